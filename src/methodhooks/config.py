"""Configuration management for methodhooks.

Configuration Discovery Precedence (Highest to Lowest Priority):
===============================================================

1. **METHODHOOKS_CONFIG_DIR Environment Variable** (Highest Priority)
   - Looks for: `${METHODHOOKS_CONFIG_DIR}/methodhooks.yaml`
   - Use case: Development, testing, custom deployments

2. **~/.methodhooks Directory** (Fallback)
   - Looks for: `~/.methodhooks/methodhooks.yaml`
   - Use case: Default user installations

If no `methodhooks.yaml` is found, default configuration is applied.
Settings can also come from `METHODHOOKS_*` environment variables
(e.g. `METHODHOOKS_DEBUG=1`). A value set in methodhooks.yaml takes
precedence over the environment variable for the same setting.

Example methodhooks.yaml:
--------
methodhooks:
  debug: false
  missing_result_log_level: WARNING
  hooks:
    - method: createTodo
      phase: before
      hook: myapp.hooks.check_owner
    - method: createTodo
      phase: after
      hook: myapp.hooks.audit
      params:
        channel: todos
"""

import functools
import importlib
import logging
import os
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from methodhooks.pipeline.hook import Hook, HookPhase

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "methodhooks.yaml"


def normalize_log_level(value: str) -> str:
    """Upper-case a logging level name, rejecting unknown names.

    Raises:
        ValueError: If the name is not a standard logging level
    """
    level = str(value).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level: {value}")
    return level


class HookEntry(BaseModel):
    """A hook registration declared in configuration."""

    method: str
    """Name of the method in the method table"""

    phase: HookPhase = HookPhase.BEFORE
    """Whether the hook runs before or after the method"""

    hook: str
    """Python import path to the hook callable (module.attr)"""

    params: dict[str, Any] = Field(default_factory=dict)
    """Keyword arguments bound to the hook with functools.partial"""


class MethodHooksConfig(BaseSettings):
    """Main configuration for methodhooks that reads from methodhooks.yaml."""

    model_config = SettingsConfigDict(
        env_prefix="METHODHOOKS_",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Level of the diagnostic emitted when an after hook drops the result
    missing_result_log_level: str = "WARNING"

    hooks: list[HookEntry] = Field(default_factory=list)

    config_path: Path = Field(default_factory=lambda: Path("./methodhooks.yaml"))

    @field_validator("missing_result_log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        return normalize_log_level(value)

    @property
    def missing_result_level(self) -> int:
        """Numeric logging level for the missing-result diagnostic."""
        return logging.getLevelName(self.missing_result_log_level)

    def load_hooks(self) -> list[tuple[HookEntry, Hook]]:
        """Resolve the configured hooks from their import paths.

        Entries that fail to import are logged and skipped.

        Returns:
            List of (entry, hook callable) tuples in configuration order
        """
        loaded: list[tuple[HookEntry, Hook]] = []
        for entry in self.hooks:
            try:
                module_path, attr_name = entry.hook.rsplit(".", 1)
                module = importlib.import_module(module_path)
                hook_fn = getattr(module, attr_name)
            except (ImportError, AttributeError, ValueError) as e:
                logger.error("Failed to load hook %s for method '%s': %s", entry.hook, entry.method, e)
                # Continue loading other hooks even if one fails
                continue

            if not callable(hook_fn):
                logger.error("Hook %s for method '%s' is not callable", entry.hook, entry.method)
                continue

            if entry.params:
                hook_fn = functools.partial(hook_fn, **entry.params)

            loaded.append((entry, hook_fn))
            logger.debug(
                "Loaded %s hook %s for method '%s' with params: %s",
                entry.phase.value,
                entry.hook,
                entry.method,
                entry.params,
            )
        return loaded

    @classmethod
    def from_yaml(cls, yaml_path: Path, **kwargs: Any) -> "MethodHooksConfig":
        """Load configuration from a methodhooks.yaml file.

        Values from the file are validated like any other setting and take
        precedence over `METHODHOOKS_*` environment variables; explicit
        keyword arguments take precedence over both.

        Args:
            yaml_path: Path to the methodhooks.yaml file
            **kwargs: Additional keyword arguments

        Returns:
            MethodHooksConfig instance

        Raises:
            pydantic.ValidationError: If a top-level setting has an invalid value
        """
        if not yaml_path.exists():
            return cls(config_path=yaml_path, **kwargs)

        with yaml_path.open() as f:
            data = yaml.safe_load(f) or {}

        section = data.get("methodhooks", {}) or {}

        file_values: dict[str, Any] = {
            key: section[key] for key in ("debug", "missing_result_log_level") if key in section
        }

        if "hooks" in section:
            hooks: list[HookEntry] = []
            for hook_data in section.get("hooks") or []:
                if not isinstance(hook_data, dict):
                    logger.error("Invalid hook entry type: %s", type(hook_data))
                    continue
                if not hook_data.get("method") or not hook_data.get("hook"):
                    logger.error("Hook entry missing 'method' or 'hook' key: %s", hook_data)
                    continue
                try:
                    hooks.append(HookEntry(**hook_data))
                except ValueError as e:
                    # pydantic.ValidationError subclasses ValueError
                    logger.error("Invalid hook entry %s: %s", hook_data, e)
            file_values["hooks"] = hooks

        return cls(**{"config_path": yaml_path, **file_values, **kwargs})


# Global configuration instance
_config_instance: MethodHooksConfig | None = None
_config_lock = threading.Lock()


def get_config() -> MethodHooksConfig:
    """Get the configuration instance."""
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            # Double-check locking pattern
            if _config_instance is None:
                env_config_dir = os.environ.get("METHODHOOKS_CONFIG_DIR")
                if env_config_dir:
                    config_dir = Path(env_config_dir)
                    logger.info("Using config directory from environment: %s", config_dir)
                else:
                    config_dir = Path.home() / ".methodhooks"

                yaml_path = config_dir / CONFIG_FILENAME
                if yaml_path.exists():
                    logger.info("Loading methodhooks config from: %s", yaml_path)
                    _config_instance = MethodHooksConfig.from_yaml(yaml_path)
                else:
                    logger.info("%s not found at %s, using default config", CONFIG_FILENAME, yaml_path)
                    _config_instance = MethodHooksConfig(config_path=yaml_path)

    return _config_instance


def set_config_instance(config: MethodHooksConfig) -> None:
    """Set the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = config


def clear_config_instance() -> None:
    """Clear the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = None
