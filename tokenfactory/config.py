"""Runtime settings.

Resolution order, later wins: built-in defaults, the YAML config file
(``$TOKENFACTORY_CONFIG`` or ``<data_dir>/config.yaml``), environment
variables, explicit overrides passed by the caller.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from tokenfactory.errors import ConfigError

logger = logging.getLogger(__name__)

BACKENDS = ("file", "memory")

ENV_HOME = "TOKENFACTORY_HOME"
ENV_CONFIG = "TOKENFACTORY_CONFIG"
ENV_BACKEND = "TOKENFACTORY_BACKEND"
ENV_PRINCIPAL = "TOKENFACTORY_PRINCIPAL"


@dataclass
class Settings:
    """Where state lives and which storage backend to use."""

    data_dir: Path
    audit_dir: Optional[Path] = None
    backend: str = "file"

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir).expanduser()
        if self.audit_dir is None:
            self.audit_dir = self.data_dir / "audit_logs"
        else:
            self.audit_dir = Path(self.audit_dir).expanduser()
        if self.backend not in BACKENDS:
            raise ConfigError(f"Unknown backend '{self.backend}' (expected one of {', '.join(BACKENDS)})")


def _read_config_file(path: Path) -> dict:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(
    config_path: Optional[str | Path] = None,
    *,
    data_dir: Optional[str | Path] = None,
    backend: Optional[str] = None,
) -> Settings:
    """Build :class:`Settings` from defaults, config file, env and overrides."""
    home = Path(data_dir or os.environ.get(ENV_HOME) or Path.home() / ".tokenfactory").expanduser()

    explicit = config_path or os.environ.get(ENV_CONFIG)
    path = Path(explicit).expanduser() if explicit else home / "config.yaml"
    file_values: dict = {}
    if path.exists():
        file_values = _read_config_file(path)
        logger.debug("Loaded config from %s", path)
    elif explicit:
        raise ConfigError(f"Config file not found: {path}")

    resolved_dir = data_dir or os.environ.get(ENV_HOME) or file_values.get("data_dir") or home
    return Settings(
        data_dir=Path(resolved_dir),
        audit_dir=file_values.get("audit_dir"),
        backend=backend or os.environ.get(ENV_BACKEND) or file_values.get("backend", "file"),
    )
