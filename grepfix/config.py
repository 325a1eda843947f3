from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from grepfix.exceptions import ConfigurationError
from grepfix.services.output_parser import DEFAULT_FORMAT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

# Probed in order when search.program is not configured.
GREP_PROGRAM_CANDIDATES = (
    ("rg", "rg --vimgrep --no-heading"),
    ("ag", "ag --vimgrep"),
    ("ack", "ack --column --with-filename --nogroup"),
    ("ack-grep", "ack-grep --column --with-filename --nogroup"),
)


def expand_env_vars(config_str: str) -> str:
    """
    Expand ${VAR_NAME} placeholders in a YAML string.

    Lines whose first non-whitespace character is ``#`` are left alone.

    Raises:
        KeyError: If a referenced environment variable is not set
    """
    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        try:
            return os.environ[var_name]
        except KeyError:
            msg = f"Environment variable '{var_name}' referenced in config.yaml but not set"
            raise KeyError(msg) from None

    lines = []
    for line in config_str.split("\n"):
        if line.lstrip().startswith("#"):
            lines.append(line)
        else:
            lines.append(re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}", replace_var, line))

    return "\n".join(lines)


def load_config_from_yaml(config_path: str | None = None) -> dict:
    """
    Load the YAML configuration file and expand environment variables.

    Args:
        config_path: Path to config.yaml. Defaults to the CONFIG_PATH
                     environment variable, then ./config.yaml.

    Raises:
        FileNotFoundError: If config file is not found
        ValueError: If the file is not valid YAML or references unset variables
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    config_file = Path(config_path)
    if not config_file.exists():
        msg = (
            f"Configuration file not found at {config_path}\n"
            f"Use CONFIG_PATH environment variable to override location."
        )
        raise FileNotFoundError(msg)

    with open(config_file) as f:
        config_str = f.read()

    try:
        expanded_config = expand_env_vars(config_str)
    except KeyError as e:
        msg = f"Error expanding environment variables in config.yaml: {e}"
        raise ValueError(msg) from None

    try:
        config_dict = yaml.safe_load(expanded_config)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in config.yaml: {e}"
        raise ValueError(msg) from None

    if not isinstance(config_dict, dict):
        msg = "config.yaml must contain a YAML mapping/dictionary at root level"
        raise ValueError(msg)

    return config_dict


def detect_grep_program() -> str | None:
    """Return the first known search program found on PATH."""
    for executable, command_line in GREP_PROGRAM_CANDIDATES:
        if shutil.which(executable):
            logger.info("Detected search program", extra={"program": executable})
            return command_line
    logger.warning("No search program found on PATH; searches are disabled")
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
    )

    # Search
    grep_program: str | None = None  # None disables searching
    grep_format: str = DEFAULT_FORMAT
    search_async: bool = True
    search_highlight: bool = False
    search_timeout_seconds: int = Field(
        default=60,
        description="Timeout for one run of the search program",
    )

    # Workspace searched and edited
    workspace_root: str = "."

    # Security
    auth_token: str  # Required

    # Observability
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("search_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            msg = "search.timeout_seconds must be positive"
            raise ValueError(msg)
        return v

    @field_validator("grep_program")
    @classmethod
    def validate_grep_program(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    def validate_workspace(self) -> None:
        """Ensure the workspace root exists (called explicitly after creation)."""
        if not Path(self.workspace_root).is_dir():
            msg = f"workspace.root is not a directory: {self.workspace_root}"
            raise ValueError(msg)


def build_settings(config_dict: dict) -> Settings:
    """
    Flatten the nested YAML structure into Settings fields.

    A missing ``search.program`` is auto-detected; an explicit empty
    string keeps searching disabled.
    """
    flat_config: dict[str, object] = {}

    search = config_dict.get("search")
    if isinstance(search, dict):
        if "program" in search:
            flat_config["grep_program"] = search["program"]
        if "format" in search:
            flat_config["grep_format"] = search["format"]
        flat_config["search_async"] = search.get("async", True)
        flat_config["search_highlight"] = search.get("highlight", False)
        flat_config["search_timeout_seconds"] = search.get("timeout_seconds", 60)
    if "grep_program" not in flat_config:
        flat_config["grep_program"] = detect_grep_program()

    workspace = config_dict.get("workspace")
    if isinstance(workspace, dict) and "root" in workspace:
        flat_config["workspace_root"] = workspace["root"]

    auth = config_dict.get("auth")
    if isinstance(auth, dict):
        flat_config["auth_token"] = auth.get("token")

    logging_section = config_dict.get("logging")
    if isinstance(logging_section, dict):
        flat_config["log_level"] = logging_section.get("level", "INFO")
        flat_config["log_json"] = logging_section.get("json", True)

    try:
        settings_obj = Settings(**flat_config)
        settings_obj.validate_workspace()
    except (ValidationError, ValueError) as e:
        msg = f"Configuration validation error: {e}"
        raise ConfigurationError(msg, context={"source": "config.yaml"}) from e
    return settings_obj


_settings: Settings | None = None


def get_settings() -> Settings:
    """Load settings from CONFIG_PATH on first use and cache them."""
    global _settings
    if _settings is None:
        _settings = build_settings(load_config_from_yaml())
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next access reloads them."""
    global _settings
    _settings = None
