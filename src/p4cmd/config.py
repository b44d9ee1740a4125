from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from p4cmd.exceptions import ConfigError
from p4cmd.logging import get_logger

__all__ = [
    "P4Config",
    "get_project_config_path",
    "get_user_config_path",
    "load_config",
]

logger = get_logger(__name__)

#: Project config file override used while :func:`load_config` runs.
_project_config_override: ContextVar[Path | None] = ContextVar(
    "p4cmd_project_config", default=None
)


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source that loads values from a YAML file."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    field=None,
                    value=None,
                ) from e
            if loaded is None:
                logger.warning("config_file_empty", path=str(yaml_file))
            elif not isinstance(loaded, dict):
                raise ConfigError(
                    message=f"Config file {yaml_file} must contain a mapping",
                    field=None,
                    value=type(loaded).__name__,
                )
            else:
                self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config_data


class P4Config(BaseSettings):
    """Connection and runtime settings for the p4 client.

    Unset connection fields are not passed to p4, which then falls back
    to its own resolution (``P4PORT``, ``P4USER``, ``P4CONFIG`` files and so
    on).

    Attributes:
        executable: p4 program name or path.
        port: Server address (``-p``).
        user: User name (``-u``).
        password: Password or ticket (``-P``). Never logged.
        client: Client workspace (``-c``).
        charset: Character set for unicode servers (``-C``).
        retries: Network retry count passed to p4 (``-r``); p4 applies it,
            this library never retries.
        encoding: Encoding of p4's output streams and stdin forms.
        cwd: Working directory for commands.
        env: Extra environment variables for every command.
        skip_invalid_records: Skip records that violate an entity schema
            instead of failing the command.

    Example p4cmd.yaml:
        port: ssl:perforce.example.com:1666
        user: alice
        client: alice-main
        retries: 2
        env:
          P4CONFIG: .p4config
    """

    model_config = SettingsConfigDict(
        env_prefix="P4CMD_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    executable: str = "p4"
    port: str | None = None
    user: str | None = None
    password: SecretStr | None = None
    client: str | None = None
    charset: str | None = None
    retries: int | None = Field(default=None, ge=0)
    encoding: str = "utf-8"
    cwd: Path | None = None
    env: dict[str, str] = Field(default_factory=dict)
    skip_invalid_records: bool = False

    @field_validator("executable")
    @classmethod
    def check_executable(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("executable cannot be empty")
        return v

    @field_validator("encoding")
    @classmethod
    def check_encoding(cls, v: str) -> str:
        try:
            "".encode(v)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {v}") from e
        return v

    @field_validator("cwd")
    @classmethod
    def check_cwd_exists(cls, v: Path | None) -> Path | None:
        """Warn if cwd doesn't exist; commands will fail until it does."""
        if v is not None and not v.is_dir():
            logger.warning("config_cwd_missing", cwd=str(v))
        return v

    def global_args(self) -> tuple[str, ...]:
        """Options placed before every subcommand, in p4's documented order."""
        args = ["-ztag"]
        if self.charset:
            args += ["-C", self.charset]
        if self.port:
            args += ["-p", self.port]
        if self.user:
            args += ["-u", self.user]
        if self.password is not None:
            args += ["-P", self.password.get_secret_value()]
        if self.client:
            args += ["-c", self.client]
        if self.retries is not None:
            args += ["-r", str(self.retries)]
        return tuple(args)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Keyword arguments
        2. Environment variables (P4CMD_*)
        3. Project YAML config (./p4cmd.yaml)
        4. User YAML config (~/.config/p4cmd/config.yaml)
        """
        project_config_path = (
            _project_config_override.get() or get_project_config_path()
        )
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_config_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/p4cmd/config.yaml
    """
    return Path.home() / ".config" / "p4cmd" / "config.yaml"


def get_project_config_path() -> Path:
    """Path to ./p4cmd.yaml in the current directory."""
    return Path.cwd() / "p4cmd.yaml"


def load_config(config_path: Path | None = None, **overrides: Any) -> P4Config:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Project config file. Defaults to ./p4cmd.yaml
        **overrides: Field values taking precedence over every source.

    Returns:
        P4Config instance with merged configuration

    Raises:
        ConfigError: If a config file or value is invalid
    """
    if config_path is None:
        config_path = get_project_config_path()

    if not config_path.exists():
        logger.debug("project_config_not_found", path=str(config_path))

    token = _project_config_override.set(config_path)
    try:
        return P4Config(**overrides)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_config_override.reset(token)
