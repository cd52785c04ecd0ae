# tree_bridge/__init__.py
"""Tree Bridge - one fit/predict interface over tree-model backends.

Translates a flat hyperparameter record into the call each backend's
training function expects, and reshapes backend predictions into uniform
prediction frames.

Engines:
- ``lightgbm``: gradient-boosted ensembles (``lightgbm.train``)
- ``cart``: a single decision tree (scikit-learn)
- ``forest``: a random forest (scikit-learn)

Quick Start:
    >>> import tree_bridge as tb
    >>>
    >>> fitted = tb.fit_model(
    ...     'lightgbm', x, y,
    ...     feature_fraction=2,
    ...     early_stopping_rounds=10,
    ...     validation=0.2
    ... )
    >>> tb.predict_model(fitted, x_new, type='prob')
    >>> tb.multi_predict(fitted, x_new, trees=[10, 50, 100])

Configuration:
    >>> from tree_bridge import LightGBMConfig, load_config
    >>> config = load_config('engines.yaml', engine='lightgbm')
    >>> fitted = tb.fit_model('lightgbm', x, y, config=config)
"""

# Package metadata
__version__ = "0.1.0"
__license__ = "MIT"
__description__ = "Argument translation and prediction reshaping for tree-model backends"

# Configure package-level logging
from .utils.logger import configure_logging, get_logger

configure_logging(
    level="INFO",
    format_style="detailed",
    include_console=True
)

logger = get_logger(__name__)
logger.debug(f"Tree Bridge v{__version__} initialized")

# Front door
from .models.trainer import fit_model, predict_model, multi_predict
from .models.base import EngineKind, FittedModel
from .models.adapters import get_supported_engines, train_lightgbm

# Configuration system
from .config.model_config import (
    BaseEngineConfig,
    LightGBMConfig,
    DecisionTreeConfig,
    ForestConfig,
    tune
)
from .config.loader import load_config, save_config

# Utilities
from .utils.logger import set_log_level
from .utils.timer import timer, timed_operation
from .utils.exceptions import (
    TreeBridgeError,
    ConfigurationError,
    InvalidArgumentError,
    UnresolvedTuningPlaceholderError,
    DataValidationError,
    DroppedArgumentWarning
)

__all__ = [
    # Fit and predict
    'fit_model',
    'predict_model',
    'multi_predict',
    'train_lightgbm',
    'get_supported_engines',
    'EngineKind',
    'FittedModel',

    # Configuration
    'BaseEngineConfig',
    'LightGBMConfig',
    'DecisionTreeConfig',
    'ForestConfig',
    'tune',
    'load_config',
    'save_config',

    # Utilities
    'get_logger',
    'configure_logging',
    'set_log_level',
    'timer',
    'timed_operation',

    # Exceptions
    'TreeBridgeError',
    'ConfigurationError',
    'InvalidArgumentError',
    'UnresolvedTuningPlaceholderError',
    'DataValidationError',
    'DroppedArgumentWarning',

    # Metadata
    '__version__',
]
