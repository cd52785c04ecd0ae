"""Tree Bridge - Model Fitting and Prediction Components.

Engine adapters plus the uniform front door over them.

Key Components:
- fit_model / predict_model / multi_predict: the fit-then-predict interface
- LightGBMAdapter: argument translation for ``lightgbm.train``
- DecisionTreeAdapter, ForestAdapter: scikit-learn pass-throughs
- FittedModel: a backend model tagged with its EngineKind

Example:
    >>> from tree_bridge.models import fit_model, predict_model
    >>> fitted = fit_model('lightgbm', x, y, num_iterations=50)
    >>> predict_model(fitted, x, type='prob')
"""

from .base import (
    CLASSIFICATION,
    REGRESSION,
    EngineKind,
    FittedModel,
    ModelAdapter
)
from .adapters import (
    get_adapter,
    get_supported_engines,
    LightGBMAdapter,
    DecisionTreeAdapter,
    ForestAdapter,
    train_lightgbm,
    prepare_lightgbm_call
)
from .trainer import fit_model, predict_model, multi_predict

__all__ = [
    # Front door
    'fit_model',
    'predict_model',
    'multi_predict',

    # Adapters
    'get_adapter',
    'get_supported_engines',
    'LightGBMAdapter',
    'DecisionTreeAdapter',
    'ForestAdapter',
    'train_lightgbm',
    'prepare_lightgbm_call',

    # Core types
    'CLASSIFICATION',
    'REGRESSION',
    'EngineKind',
    'FittedModel',
    'ModelAdapter'
]
