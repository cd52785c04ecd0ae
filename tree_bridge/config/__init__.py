"""Tree Bridge - Configuration Management Components.

Typed hyperparameter records for each engine and YAML/JSON loading.

Example:
    >>> from tree_bridge.config import LightGBMConfig, load_config
    >>> config = LightGBMConfig(feature_fraction=3, early_stopping_rounds=10)
    >>> config = load_config('engines.yaml', engine='lightgbm')
"""

from .model_config import (
    BaseEngineConfig,
    LightGBMConfig,
    DecisionTreeConfig,
    ForestConfig,
    TuneMarker,
    tune,
    get_config_class,
    config_from_params
)
from .loader import (
    ConfigLoader,
    load_config,
    save_config
)

__all__ = [
    # Engine configurations
    'BaseEngineConfig',
    'LightGBMConfig',
    'DecisionTreeConfig',
    'ForestConfig',
    'TuneMarker',
    'tune',
    'get_config_class',
    'config_from_params',

    # Configuration utilities
    'ConfigLoader',
    'load_config',
    'save_config'
]
