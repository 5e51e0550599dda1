"""
Unit tests for CLI commands.
"""

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from crumb import __version__
from crumb.cli.app import app
from crumb.crypto import load_recipient
from crumb.secrets import SecretSet, SecretStore


@pytest.fixture
def seed(configured_profile: Path, recipient, identity):
    """Write secrets to the configured store; returns a loader for assertions."""

    def _seed(secrets: dict[str, str]) -> None:
        SecretStore(configured_profile).save(SecretSet(secrets), recipient)

    _seed.load = lambda: dict(SecretStore(configured_profile).load(identity))
    return _seed


@pytest.fixture
def project_file(temp_dir: Path, sample_project_yaml: str) -> Path:
    path = temp_dir / ".crumb.yaml"
    path.write_text(sample_project_yaml)
    return path


def test_version(cli_runner: CliRunner) -> None:
    """Test --version flag."""
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_help(cli_runner: CliRunner) -> None:
    """Test --help lists the main commands."""
    result = cli_runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("setup", "list", "set", "get", "export", "storage"):
        assert command in result.stdout


def test_command_without_setup(cli_runner: CliRunner, crumb_home: Path) -> None:
    """Test that commands point at setup when no profile exists."""
    result = cli_runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "crumb setup" in result.output


# =============================================================================
# setup / storage
# =============================================================================


class TestSetup:
    """Tests for `crumb setup`."""

    def test_setup_default_profile(
        self, cli_runner: CliRunner, crumb_home: Path, ed25519_keys: tuple[Path, Path]
    ) -> None:
        """Test that setup writes the profile and an empty secrets file."""
        public_path, private_path = ed25519_keys
        result = cli_runner.invoke(app, ["setup"], input=f"{public_path}\n{private_path}\n")

        assert result.exit_code == 0, result.output
        assert "Setup completed" in result.output

        config = yaml.safe_load((crumb_home / "config.yaml").read_text())
        profile = config["profiles"]["default"]
        assert profile["public_key_path"] == str(public_path)
        assert profile["storage"] == str(crumb_home.resolve() / "secrets")
        assert (crumb_home / "secrets").stat().st_size > 0

    def test_setup_with_storage_flag(
        self,
        cli_runner: CliRunner,
        crumb_home: Path,
        temp_dir: Path,
        ed25519_keys: tuple[Path, Path],
    ) -> None:
        """Test that --storage places the secrets file."""
        public_path, private_path = ed25519_keys
        storage = temp_dir / "elsewhere" / "secrets"
        result = cli_runner.invoke(
            app, ["--storage", str(storage), "setup"], input=f"{public_path}\n{private_path}\n"
        )
        assert result.exit_code == 0, result.output
        assert storage.exists()

    def test_setup_mismatched_keys(
        self,
        cli_runner: CliRunner,
        crumb_home: Path,
        ed25519_keys: tuple[Path, Path],
        other_ed25519_keys: tuple[Path, Path],
    ) -> None:
        """Test that a public key from another pair is rejected."""
        result = cli_runner.invoke(
            app, ["setup"], input=f"{ed25519_keys[0]}\n{other_ed25519_keys[1]}\n"
        )
        assert result.exit_code == 1
        assert "ssh-keygen" in result.output
        assert not (crumb_home / "config.yaml").exists()

    def test_setup_keeps_existing_secrets(
        self,
        cli_runner: CliRunner,
        seed,
        configured_profile: Path,
        ed25519_keys: tuple[Path, Path],
    ) -> None:
        """Test that re-running setup can keep the current secrets."""
        seed({"/a": "1"})
        public_path, private_path = ed25519_keys
        result = cli_runner.invoke(
            app,
            ["--storage", str(configured_profile), "setup"],
            input=f"{public_path}\n{private_path}\nn\n",
        )
        assert "Keeping existing secrets file" in result.output
        assert result.exit_code == 0, result.output
        assert seed.load() == {"/a": "1"}


class TestStorage:
    """Tests for `crumb storage`."""

    def test_get(self, cli_runner: CliRunner, configured_profile: Path) -> None:
        result = cli_runner.invoke(app, ["storage", "get"])
        assert result.exit_code == 0
        assert "Storage:" in result.output
        assert "profile: default" in result.output

    def test_set_and_clear(
        self, cli_runner: CliRunner, configured_profile: Path, crumb_home: Path, temp_dir: Path
    ) -> None:
        """Test changing and resetting the storage location."""
        new_path = temp_dir / "moved"
        result = cli_runner.invoke(app, ["storage", "set", str(new_path)])
        assert result.exit_code == 0
        config = yaml.safe_load((crumb_home / "config.yaml").read_text())
        assert config["profiles"]["default"]["storage"] == str(new_path)

        result = cli_runner.invoke(app, ["storage", "clear"])
        assert result.exit_code == 0
        config = yaml.safe_load((crumb_home / "config.yaml").read_text())
        assert config["profiles"]["default"]["storage"] == ""

    def test_set_unknown_profile(self, cli_runner: CliRunner, configured_profile: Path) -> None:
        result = cli_runner.invoke(app, ["--profile", "work", "storage", "set", "/tmp/x"])
        assert result.exit_code == 1
        assert "not found" in result.output


# =============================================================================
# Secret commands
# =============================================================================


class TestSecretCommands:
    """Tests for list/set/get/delete/move."""

    def test_set_then_get(self, cli_runner: CliRunner, seed) -> None:
        """Test storing and reading a secret."""
        result = cli_runner.invoke(app, ["set", "/prod/api/key", "s3cret"])
        assert result.exit_code == 0, result.output
        assert "Successfully set key" in result.output

        result = cli_runner.invoke(app, ["get", "/prod/api/key", "--show"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "s3cret"

    def test_get_is_masked_by_default(self, cli_runner: CliRunner, seed) -> None:
        seed({"/prod/api/key": "s3cret"})
        result = cli_runner.invoke(app, ["get", "/prod/api/key"])
        assert result.exit_code == 0
        assert "s3cret" not in result.output
        assert "****" in result.output

    def test_get_export(self, cli_runner: CliRunner, seed) -> None:
        """Test that --export names the variable after the last segment."""
        seed({"/prod/my-service/auth-token": "tok"})
        result = cli_runner.invoke(app, ["get", "/prod/my-service/auth-token", "--export"])
        assert result.stdout.strip() == "export AUTH_TOKEN=tok"

        result = cli_runner.invoke(
            app, ["get", "/prod/my-service/auth-token", "--export", "--shell", "fish"]
        )
        assert result.stdout.strip() == "set -x AUTH_TOKEN tok"

    def test_get_missing(self, cli_runner: CliRunner, seed) -> None:
        seed({"/a": "1"})
        result = cli_runner.invoke(app, ["get", "/b"])
        assert result.exit_code == 1
        assert "Key not found" in result.output

    def test_set_invalid_path(self, cli_runner: CliRunner, seed) -> None:
        result = cli_runner.invoke(app, ["set", "no-slash", "v"])
        assert result.exit_code == 1
        assert "start with '/'" in result.output

    def test_set_existing_declined(self, cli_runner: CliRunner, seed) -> None:
        """Test that declining an overwrite keeps the old value."""
        seed({"/a": "old"})
        result = cli_runner.invoke(app, ["set", "/a", "new"], input="n\n")
        assert result.exit_code == 0
        assert "Operation cancelled" in result.output
        assert "old" not in result.output
        assert seed.load() == {"/a": "old"}

    def test_set_existing_with_yes(self, cli_runner: CliRunner, seed) -> None:
        seed({"/a": "old"})
        result = cli_runner.invoke(app, ["set", "/a", "new", "--yes"])
        assert result.exit_code == 0
        assert seed.load() == {"/a": "new"}

    def test_list_filtered(self, cli_runner: CliRunner, seed) -> None:
        """Test that list prints sorted keys under the prefix."""
        seed({"/prod/b": "1", "/prod/a": "2", "/dev/c": "3"})
        result = cli_runner.invoke(app, ["list", "/prod/"])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["/prod/a", "/prod/b"]

    def test_list_empty(self, cli_runner: CliRunner, configured_profile: Path) -> None:
        result = cli_runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No secrets found" in result.output

    def test_list_no_match(self, cli_runner: CliRunner, seed) -> None:
        seed({"/dev/a": "1"})
        result = cli_runner.invoke(app, ["ls", "/prod"])
        assert result.exit_code == 0
        assert "No secrets found matching path" in result.output

    def test_list_wrong_key(
        self,
        cli_runner: CliRunner,
        configured_profile: Path,
        other_ed25519_keys: tuple[Path, Path],
    ) -> None:
        """Test that a file encrypted to another key fails cleanly."""
        SecretStore(configured_profile).save({"/a": "1"}, load_recipient(other_ed25519_keys[0]))
        result = cli_runner.invoke(app, ["list"])
        assert result.exit_code == 1

    def test_delete_confirmed(self, cli_runner: CliRunner, seed) -> None:
        """Test that typing the path deletes the key."""
        seed({"/a": "1", "/b": "2"})
        result = cli_runner.invoke(app, ["delete", "/a"], input="/a\n")
        assert result.exit_code == 0
        assert "Successfully deleted key" in result.output
        assert seed.load() == {"/b": "2"}

    def test_delete_wrong_confirmation(self, cli_runner: CliRunner, seed) -> None:
        seed({"/a": "1"})
        result = cli_runner.invoke(app, ["delete", "/a"], input="/b\n")
        assert result.exit_code == 0
        assert "Deletion cancelled" in result.output
        assert seed.load() == {"/a": "1"}

    def test_delete_missing(self, cli_runner: CliRunner, seed) -> None:
        seed({"/a": "1"})
        result = cli_runner.invoke(app, ["rm", "/b", "--yes"])
        assert result.exit_code == 1

    def test_move(self, cli_runner: CliRunner, seed) -> None:
        seed({"/old": "v"})
        result = cli_runner.invoke(app, ["move", "/old", "/new"])
        assert result.exit_code == 0
        assert "Successfully moved key" in result.output
        assert seed.load() == {"/new": "v"}

    def test_move_onto_existing_declined(self, cli_runner: CliRunner, seed) -> None:
        """Test that a declined overwrite changes nothing."""
        seed({"/old": "v", "/new": "w"})
        result = cli_runner.invoke(app, ["mv", "/old", "/new"], input="n\n")
        assert result.exit_code == 0
        assert "Operation cancelled" in result.output
        assert seed.load() == {"/old": "v", "/new": "w"}

    def test_move_missing(self, cli_runner: CliRunner, seed) -> None:
        seed({"/a": "1"})
        result = cli_runner.invoke(app, ["move", "/old", "/new"])
        assert result.exit_code == 1

    def test_move_invalid_new_path(self, cli_runner: CliRunner, seed) -> None:
        result = cli_runner.invoke(app, ["move", "/old", "new"])
        assert result.exit_code == 1
        assert "invalid new key path" in result.output


class TestImport:
    """Tests for `crumb import`."""

    def test_import(self, cli_runner: CliRunner, seed, temp_dir: Path) -> None:
        env_file = temp_dir / ".env"
        env_file.write_text("# comment\nAPI_KEY=abc\nDEBUG='true'\n")
        result = cli_runner.invoke(app, ["import", "-f", str(env_file), "--path", "/prod/api/"])
        assert result.exit_code == 0, result.output
        assert "Successfully imported 2" in result.output
        assert seed.load() == {"/prod/api/API_KEY": "abc", "/prod/api/DEBUG": "true"}

    def test_import_conflict_declined(self, cli_runner: CliRunner, seed, temp_dir: Path) -> None:
        """Test that declining leaves existing keys alone."""
        seed({"/prod/api/API_KEY": "old"})
        env_file = temp_dir / ".env"
        env_file.write_text("API_KEY=new\n")
        result = cli_runner.invoke(
            app, ["import", "-f", str(env_file), "--path", "/prod/api"], input="n\n"
        )
        assert result.exit_code == 0
        assert "Import cancelled" in result.output
        assert seed.load() == {"/prod/api/API_KEY": "old"}

    def test_import_missing_file(self, cli_runner: CliRunner, seed, temp_dir: Path) -> None:
        result = cli_runner.invoke(
            app, ["import", "-f", str(temp_dir / "nope.env"), "--path", "/prod"]
        )
        assert result.exit_code == 1


# =============================================================================
# init / export
# =============================================================================


class TestInit:
    """Tests for `crumb init`."""

    def test_init_creates_file(self, cli_runner: CliRunner, temp_dir: Path) -> None:
        path = temp_dir / ".crumb.yaml"
        result = cli_runner.invoke(app, ["init", "--file", str(path)])
        assert result.exit_code == 0
        raw = yaml.safe_load(path.read_text())
        assert raw["version"] == "1.0"
        assert "default" in raw["environments"]

    def test_init_existing_declined(self, cli_runner: CliRunner, project_file: Path) -> None:
        before = project_file.read_text()
        result = cli_runner.invoke(app, ["init", "--file", str(project_file)], input="n\n")
        assert result.exit_code == 0
        assert project_file.read_text() == before


class TestExport:
    """Tests for `crumb export`."""

    SECRETS = {
        "/prod/my-service/auth-token": "tok",
        "/prod/my-service/db/url": "pg",
        "/prod/db/password": "pw",
        "/staging/api-key": "stage",
    }

    def test_export_default_environment(
        self, cli_runner: CliRunner, seed, project_file: Path
    ) -> None:
        """Test prefix, env, remap and missing references together."""
        seed(self.SECRETS)
        result = cli_runner.invoke(app, ["export", "--file", str(project_file)])
        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == [
            "# Exported from /prod/my-service",
            "export DB_PASSWORD=pw",
            "export DB_TYPE=postgres",
            "export DB_URL=pg",
            "export SERVICE_TOKEN=tok",
        ]

    def test_export_other_environment_fish(
        self, cli_runner: CliRunner, seed, project_file: Path
    ) -> None:
        seed(self.SECRETS)
        result = cli_runner.invoke(
            app, ["export", "--file", str(project_file), "-e", "staging", "--shell", "fish"]
        )
        assert result.exit_code == 0
        assert "set -x API_KEY stage" in result.stdout

    def test_export_shell_from_env(
        self, cli_runner: CliRunner, seed, project_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seed(self.SECRETS)
        monkeypatch.setenv("CRUMB_SHELL", "fish")
        result = cli_runner.invoke(app, ["export", "--file", str(project_file)])
        assert "set -x DB_TYPE postgres" in result.stdout

    def test_export_path(self, cli_runner: CliRunner, seed) -> None:
        """Test direct path export named by final segment."""
        seed(self.SECRETS)
        result = cli_runner.invoke(app, ["export", "--path", "/prod/my-service/"])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "# Exported from /prod/my-service",
            "export AUTH_TOKEN=tok",
            "export URL=pg",
        ]

    def test_export_root_path_comment(self, cli_runner: CliRunner, seed) -> None:
        """Test that exporting '/' names the root in the comment."""
        seed({"/api-key": "k"})
        result = cli_runner.invoke(app, ["export", "--path", "/"])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["# Exported from /", "export API_KEY=k"]

    def test_export_quotes_values_for_eval(self, cli_runner: CliRunner, seed) -> None:
        """Test that shell metacharacters in values are single-quoted."""
        seed({"/prod/app/password": "pa$$`id`"})
        result = cli_runner.invoke(app, ["export", "--path", "/prod/app"])
        assert "export PASSWORD='pa$$`id`'" in result.stdout

    def test_export_nothing_is_not_an_error(self, cli_runner: CliRunner, seed) -> None:
        seed({"/dev/a": "1"})
        result = cli_runner.invoke(app, ["export", "--path", "/prod"])
        assert result.exit_code == 0
        assert "no secrets found" in result.output

    def test_export_unknown_environment(
        self, cli_runner: CliRunner, seed, project_file: Path
    ) -> None:
        seed(self.SECRETS)
        result = cli_runner.invoke(app, ["export", "--file", str(project_file), "--env", "qa"])
        assert result.exit_code == 1
        assert "environment 'qa' not found" in result.output

    def test_export_missing_project_file(
        self, cli_runner: CliRunner, seed, temp_dir: Path
    ) -> None:
        result = cli_runner.invoke(app, ["export", "--file", str(temp_dir / "none.yaml")])
        assert result.exit_code == 1

    def test_export_unsupported_shell(self, cli_runner: CliRunner, seed) -> None:
        result = cli_runner.invoke(app, ["export", "--path", "/prod", "--shell", "zsh"])
        assert result.exit_code == 1
        assert "unsupported shell format" in result.output
