"""
Placement configuration.

Named scopes and logging settings, loaded from YAML:

    log_level: INFO
    default_scope: host
    scopes:
      host:
        device: cpu
        id: 0
      npu:
        device: npu
        id: "${NPU_ID}"
        memory_scope: global
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import yaml

from .errors import InvalidScopeError, WarningCode, WarningCollector
from .scope import PlacementScope, unconstrained


logger = logging.getLogger(__name__)


@dataclass
class PlacementConfig:
    """Options for building placement IR."""

    # Log level
    log_level: int = logging.WARNING

    # Named scopes, e.g. "host" -> scope(device=cpu, id=0)
    scopes: Dict[str, PlacementScope] = field(default_factory=dict)

    # Name of the scope used when a pass needs a default
    default_scope: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.log_level, str):
            level = logging.getLevelName(self.log_level.upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {self.log_level}")
            self.log_level = level
        if self.default_scope is not None and self.default_scope not in self.scopes:
            raise InvalidScopeError(f"default scope '{self.default_scope}' is not defined")

    def scope(self, name: str) -> PlacementScope:
        """Look up a named scope."""
        if name not in self.scopes:
            raise InvalidScopeError(
                f"undefined scope '{name}'",
                hint="defined scopes: " + (", ".join(sorted(self.scopes)) or "none"),
            )
        return self.scopes[name]

    def default(self) -> PlacementScope:
        """The default scope, or the unconstrained scope if none is configured."""
        if self.default_scope is None:
            return unconstrained()
        return self.scopes[self.default_scope]

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "PlacementConfig":
        unknown = set(cfg) - {"log_level", "scopes", "default_scope"}
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        scopes = {
            name: PlacementScope.from_dict(spec or {})
            for name, spec in (cfg.get("scopes") or {}).items()
        }
        return cls(
            log_level=cfg.get("log_level", logging.WARNING),
            scopes=scopes,
            default_scope=cfg.get("default_scope"),
        )


def load_config(path: str, warnings: Optional[WarningCollector] = None) -> PlacementConfig:
    with open(path, encoding="utf-8") as file:
        cfg_dict = yaml.safe_load(file) or {}

    cfg_dict = _expand_env_vars(cfg_dict, warnings)
    config = PlacementConfig.from_dict(cfg_dict)

    logger.debug(
        "config:\n%s",
        json.dumps(cfg_dict, indent=2, default=str, sort_keys=True),
    )
    return config


def _expand_env_vars(obj: Any, warnings: Optional[WarningCollector] = None) -> Any:
    """
    Recursively expand environment variables in config.
    Supports ${VAR_NAME} syntax. A string that is exactly one reference to an
    integer-valued variable becomes an int, so device ids can come from the
    environment.
    """
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v, warnings) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item, warnings) for item in obj]
    elif isinstance(obj, str):
        pattern = r'\$\{([^}]+)\}'

        def replace_env_var(match):
            var_name = match.group(1)
            value = os.environ.get(var_name)
            if value is None:
                logger.warning(f"Environment variable not found: {var_name}")
                if warnings is not None:
                    warnings.warn(WarningCode.W001, f"environment variable not found: {var_name}")
                return match.group(0)
            return value

        expanded = re.sub(pattern, replace_env_var, obj)
        if expanded != obj and re.fullmatch(pattern, obj) and re.fullmatch(r'-?\d+', expanded):
            return int(expanded)
        return expanded
    else:
        return obj


def configure_logging(config: Union[PlacementConfig, None] = None) -> None:
    """Configure logging based on the config."""
    config = config or PlacementConfig()
    logging.basicConfig(level=config.log_level)
