"""
Pydantic configuration schema for crumb.

Two documents are modelled here:
- the profiles file (~/.config/crumb/config.yaml), mapping a profile name to
  an SSH key pair and an optional storage location;
- the per-project export file (.crumb.yaml), mapping an environment name to
  the secrets that should be exported for it.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ShellName = Literal["bash", "fish"]

# =============================================================================
# Profiles
# =============================================================================


class ProfileConfig(BaseModel):
    """A single profile: which key pair to use and where the secrets live."""

    model_config = ConfigDict(extra="allow")

    public_key_path: str
    private_key_path: str
    storage: str = ""


class Config(BaseModel):
    """Root of ~/.config/crumb/config.yaml."""

    model_config = ConfigDict(extra="allow")

    profiles: dict[str, ProfileConfig] = Field(default_factory=dict)
    shell: ShellName | None = None

    @field_validator("profiles", mode="before")
    @classmethod
    def _none_profiles(cls, value: Any) -> Any:
        return {} if value is None else value

    def get_profile(self, name: str) -> ProfileConfig | None:
        return self.profiles.get(name)


# =============================================================================
# Project export configuration
# =============================================================================


class ExportEnvironment(BaseModel):
    """
    One named export environment.

    Attributes:
        path: Secret path prefix to export wholesale ("" disables it).
        remap: Renames applied to already-resolved variable names.
        env: Variable name to literal value, or to a secret path when the
            value starts with '/'.
    """

    model_config = ConfigDict(extra="allow")

    path: str = ""
    remap: dict[str, str] = Field(default_factory=dict)
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("path", mode="before")
    @classmethod
    def _none_path(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("remap", "env", mode="before")
    @classmethod
    def _none_maps(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            # YAML turns unquoted numbers and booleans into non-strings
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value


class ProjectExportConfig(BaseModel):
    """Root of a project's .crumb.yaml."""

    model_config = ConfigDict(extra="allow")

    version: str
    environments: dict[str, ExportEnvironment] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("version")
    @classmethod
    def _require_version(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("missing version")
        return value

    @field_validator("environments", mode="before")
    @classmethod
    def _none_environments(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {name: {} if env is None else env for name, env in value.items()}
        return value

    def get_environment(self, name: str) -> ExportEnvironment | None:
        return self.environments.get(name)
