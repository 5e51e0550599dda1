"""
Pytest configuration and fixtures for crumb tests.
"""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import yaml
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa
from typer.testing import CliRunner

from crumb.crypto import Identity, Recipient, load_identity, load_recipient


def _write_key_pair(private_key, directory: Path, name: str) -> tuple[Path, Path]:
    private_path = directory / name
    public_path = directory / f"{name}.pub"
    private_path.write_bytes(
        private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.OpenSSH,
            serialization.NoEncryption(),
        )
    )
    private_path.chmod(0o600)
    public_path.write_bytes(
        private_key.public_key().public_bytes(
            serialization.Encoding.OpenSSH,
            serialization.PublicFormat.OpenSSH,
        )
        + b" test@crumb\n"
    )
    return public_path, private_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def crumb_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point CRUMB_HOME at an empty temporary directory."""
    home = temp_dir / "crumb-home"
    home.mkdir()
    monkeypatch.setenv("CRUMB_HOME", str(home))
    monkeypatch.delenv("CRUMB_PROFILE", raising=False)
    monkeypatch.delenv("CRUMB_SHELL", raising=False)
    return home


@pytest.fixture
def ssh_dir(temp_dir: Path) -> Path:
    path = temp_dir / "ssh"
    path.mkdir()
    return path


@pytest.fixture
def ed25519_keys(ssh_dir: Path) -> tuple[Path, Path]:
    """(public, private) paths of a fresh ssh-ed25519 key pair."""
    return _write_key_pair(ed25519.Ed25519PrivateKey.generate(), ssh_dir, "id_ed25519")


@pytest.fixture
def other_ed25519_keys(ssh_dir: Path) -> tuple[Path, Path]:
    """A second, unrelated ssh-ed25519 key pair."""
    return _write_key_pair(ed25519.Ed25519PrivateKey.generate(), ssh_dir, "id_other")


@pytest.fixture(scope="session")
def _rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def rsa_keys(ssh_dir: Path, _rsa_private_key) -> tuple[Path, Path]:
    """(public, private) paths of an ssh-rsa key pair."""
    return _write_key_pair(_rsa_private_key, ssh_dir, "id_rsa")


@pytest.fixture
def recipient(ed25519_keys: tuple[Path, Path]) -> Recipient:
    return load_recipient(ed25519_keys[0])


@pytest.fixture
def identity(ed25519_keys: tuple[Path, Path]) -> Identity:
    return load_identity(ed25519_keys[1])


@pytest.fixture
def storage_path(temp_dir: Path) -> Path:
    return temp_dir / "secrets"


@pytest.fixture
def configured_profile(
    crumb_home: Path, ed25519_keys: tuple[Path, Path], storage_path: Path
) -> Path:
    """Write a 'default' profile to the profiles file and return the storage path."""
    public_path, private_path = ed25519_keys
    config = {
        "profiles": {
            "default": {
                "public_key_path": str(public_path),
                "private_key_path": str(private_path),
                "storage": str(storage_path),
            }
        }
    }
    (crumb_home / "config.yaml").write_text(yaml.safe_dump(config))
    return storage_path


@pytest.fixture
def sample_project_yaml() -> str:
    """Provide sample .crumb.yaml content."""
    return """
version: "1.0"
environments:
  default:
    path: /prod/my-service
    remap:
      AUTH_TOKEN: SERVICE_TOKEN
    env:
      DB_TYPE: postgres
      db-password: /prod/db/password
      MISSING: /prod/does/not/exist
  staging:
    path: /staging/
"""
