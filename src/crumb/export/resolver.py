"""
Export resolution for crumb.

Turns stored secrets into environment variables, using one of two naming
rules:

- Project exports (.crumb.yaml ``path``) keep the whole suffix below the
  prefix: ``/prod/svc/db/url`` under ``/prod/svc`` becomes ``DB_URL``.
- Single-key and direct ``--path`` exports keep only the final segment:
  ``/prod/svc/db/url`` becomes ``URL``.
"""

import logging
from collections.abc import Mapping

from crumb.config.schema import ExportEnvironment
from crumb.exceptions import NoSecretsError

logger = logging.getLogger(__name__)


def sanitize_var_name(name: str) -> str:
    """Replace '-' with '_' and uppercase."""
    return name.replace("-", "_").upper()


def extract_var_name(key_path: str) -> str:
    """
    Variable name from the final path segment.

    ``/prod/billing-svc/api-key`` -> ``API_KEY``
    """
    return sanitize_var_name(key_path.rsplit("/", 1)[-1])


def _trim_prefix(path_prefix: str) -> str:
    if path_prefix.endswith("/"):
        return path_prefix[:-1]
    return path_prefix


def _suffix(secret_path: str, path_prefix: str) -> str:
    remaining = secret_path[len(path_prefix) :]
    if remaining.startswith("/"):
        remaining = remaining[1:]
    return remaining


def secrets_for_path(secrets: Mapping[str, str], path_prefix: str) -> dict[str, str]:
    """All secrets whose path starts with the prefix (one trailing '/' ignored)."""
    path_prefix = _trim_prefix(path_prefix)
    return {path: value for path, value in secrets.items() if path.startswith(path_prefix)}


def convert_path_to_env_var(secret_path: str, path_prefix: str) -> str:
    """Variable name for a direct export: final segment of the part below the prefix."""
    return extract_var_name(_suffix(secret_path, path_prefix))


def convert_path_to_project_var(secret_path: str, path_prefix: str) -> str:
    """Variable name for a project export: the full suffix with '/' and '-' as '_'."""
    return sanitize_var_name(_suffix(secret_path, path_prefix).replace("/", "_"))


def _sorted(env_vars: dict[str, str]) -> dict[str, str]:
    if not env_vars:
        raise NoSecretsError("no secrets found to export")
    return {key: env_vars[key] for key in sorted(env_vars)}


class ExportResolver:
    """
    Resolves export environments against a loaded secret set.

    Example:
        resolver = ExportResolver(secrets)
        env_vars = resolver.resolve(project.environments["default"])
    """

    def __init__(self, secrets: Mapping[str, str]):
        self.secrets = secrets

    def resolve(self, environment: ExportEnvironment) -> dict[str, str]:
        """
        Resolve one environment to variable assignments.

        Steps, in order:
        1. Expand ``path`` into variables named after the full suffix.
        2. Apply ``env`` entries: '/'-prefixed values are secret lookups
           (skipped when absent), anything else is a literal.
        3. Apply ``remap`` renames, in sorted order of the source name.

        Returns:
            Variables keyed in sorted order.

        Raises:
            NoSecretsError: If nothing resolved.
        """
        env_vars: dict[str, str] = {}

        if environment.path:
            path_prefix = _trim_prefix(environment.path)
            for secret_path in sorted(secrets_for_path(self.secrets, path_prefix)):
                var_name = convert_path_to_project_var(secret_path, path_prefix)
                if var_name:
                    env_vars[var_name] = self.secrets[secret_path]

        for name in sorted(environment.env):
            value = environment.env[name]
            var_name = sanitize_var_name(name)
            if value.startswith("/"):
                if value in self.secrets:
                    env_vars[var_name] = self.secrets[value]
                else:
                    logger.debug(f"Secret for {var_name} not found, skipping")
            else:
                env_vars[var_name] = value

        for name in sorted(environment.remap):
            source = sanitize_var_name(name)
            target = sanitize_var_name(environment.remap[name])
            if source in env_vars:
                value = env_vars.pop(source)
                env_vars[target] = value

        return _sorted(env_vars)

    def resolve_path(self, path_prefix: str) -> dict[str, str]:
        """
        Direct export of every secret under a prefix, named by final segment.

        Raises:
            NoSecretsError: If nothing matched.
        """
        path_prefix = _trim_prefix(path_prefix)
        env_vars: dict[str, str] = {}
        for secret_path in sorted(secrets_for_path(self.secrets, path_prefix)):
            var_name = convert_path_to_env_var(secret_path, path_prefix)
            if var_name:
                env_vars[var_name] = self.secrets[secret_path]
        return _sorted(env_vars)


def resolve(environment: ExportEnvironment, secrets: Mapping[str, str]) -> dict[str, str]:
    """Shortcut for ExportResolver(secrets).resolve(environment)."""
    return ExportResolver(secrets).resolve(environment)
