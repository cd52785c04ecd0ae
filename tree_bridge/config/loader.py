# tree_bridge/config/loader.py
"""Loading engine configuration from YAML or JSON files.

A configuration file maps engine names to their hyperparameters::

    lightgbm:
      num_iterations: 200
      feature_fraction: 0.5
      counts: false
    forest:
      trees: 300

Environment variables ``TREE_BRIDGE_<ENGINE>_<FIELD>`` override file values.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .model_config import BaseEngineConfig, CONFIG_CLASSES, config_from_params
from ..utils.exceptions import ConfigurationError, FileOperationError
from ..utils.logger import get_logger
from ..utils.timer import timer

logger = get_logger(__name__)

ENV_PREFIX = "TREE_BRIDGE_"


class ConfigLoader:
    """Reads configuration files and builds typed engine records.

    Example:
        >>> loader = ConfigLoader('config/')
        >>> config = loader.load('engines.yaml')
        >>> lgb_config = loader.get_engine_config('lightgbm', config)
    """

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        allow_environment_override: bool = True,
        encoding: str = 'utf-8'
    ) -> None:
        """Initialize configuration loader.

        Args:
            config_dir: Directory relative paths are resolved against
            allow_environment_override: Whether to apply environment overrides
            encoding: File encoding for configuration files
        """
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()
        self.allow_environment_override = allow_environment_override
        self.encoding = encoding

    @timer(name="config_loading")
    def load(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        """Load a ``.yaml``/``.yml``/``.json`` file into a dictionary.

        Raises:
            ConfigurationError: If the file is missing, malformed, or not a mapping
        """
        file_path = self._resolve_config_path(file_path)

        try:
            with open(file_path, 'r', encoding=self.encoding) as f:
                if file_path.suffix.lower() == '.json':
                    config = json.load(f)
                else:
                    config = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                error_code="CONFIG_NOT_FOUND"
            ) from None
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Error parsing configuration file {file_path}: {e}",
                error_code="CONFIG_PARSE_FAILED"
            ) from e

        if config is None:
            config = {}

        if not isinstance(config, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping, got {type(config).__name__}",
                error_code="CONFIG_NOT_A_MAPPING"
            )

        logger.debug(f"Loaded configuration from {file_path}")
        return self.apply_environment_overrides(config)

    def save(self, config: Dict[str, Any], file_path: Union[str, Path]) -> None:
        """Write a configuration mapping as YAML (or JSON for ``.json`` paths)."""
        file_path = self._resolve_config_path(file_path)

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding=self.encoding) as f:
                if file_path.suffix.lower() == '.json':
                    json.dump(config, f, indent=2, default=str)
                else:
                    yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise FileOperationError(
                f"Failed to write configuration file {file_path}",
                error_code="CONFIG_SAVE_FAILED",
                context={'file_path': str(file_path), 'error': str(e)}
            ) from e

        logger.info(f"Saved configuration to {file_path}")

    def _resolve_config_path(self, file_path: Union[str, Path]) -> Path:
        file_path = Path(file_path)
        if not file_path.is_absolute():
            file_path = self.config_dir / file_path
        return file_path

    def apply_environment_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply ``TREE_BRIDGE_<ENGINE>_<FIELD>=value`` overrides.

        Example: TREE_BRIDGE_LIGHTGBM_NUM_ITERATIONS=200
        """
        if not self.allow_environment_override:
            return config

        overridden = {
            engine: dict(section) if isinstance(section, dict) else section
            for engine, section in config.items()
        }
        applied = []

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            remainder = env_key[len(ENV_PREFIX):].lower()
            for engine in CONFIG_CLASSES:
                if remainder.startswith(f"{engine}_"):
                    key = remainder[len(engine) + 1:]
                    section = overridden.get(engine)
                    if not isinstance(section, dict):
                        section = overridden[engine] = {}
                    section[key] = self._parse_env_value(env_value)
                    applied.append(env_key)
                    break

        if applied:
            logger.info(f"Applying environment overrides: {sorted(applied)}")

        return overridden

    def _parse_env_value(self, value: str) -> Any:
        """Parse an environment variable value (JSON first, then plain string)."""
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        return value

    def get_engine_config(self, engine: str, config: Dict[str, Any]) -> BaseEngineConfig:
        """Build the typed record for ``engine`` from a loaded mapping.

        Raises:
            ConfigurationError: If the engine section is not a mapping
            InvalidArgumentError: For unknown keys (non-LightGBM engines) or bad values
        """
        section = config.get(engine, {}) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"Configuration section '{engine}' must be a mapping",
                error_code="CONFIG_SECTION_INVALID",
                context={'engine': engine}
            )

        return config_from_params(engine, **section)


def load_config(
    file_path: Union[str, Path],
    engine: Optional[str] = None,
    allow_environment_override: bool = True
) -> Union[Dict[str, Any], BaseEngineConfig]:
    """Load a configuration file.

    Args:
        file_path: Path to a YAML or JSON file
        engine: When given, return that engine's typed record instead of the mapping
        allow_environment_override: Whether to apply environment overrides

    Example:
        >>> lgb_config = load_config('engines.yaml', engine='lightgbm')
    """
    loader = ConfigLoader(allow_environment_override=allow_environment_override)
    config = loader.load(Path(file_path).resolve())
    if engine is None:
        return config
    return loader.get_engine_config(engine, config)


def save_config(config: Union[Dict[str, Any], BaseEngineConfig], file_path: Union[str, Path]) -> None:
    """Save a configuration mapping, or a single engine record under its engine key."""
    if isinstance(config, BaseEngineConfig):
        config = {config.engine: {k: v for k, v in config.to_dict().items() if k != 'engine'}}
    ConfigLoader().save(config, Path(file_path).resolve())
