"""Engine adapters: LightGBM plus scikit-learn trees and forests."""

from .factory import get_adapter, get_supported_engines
from .lightgbm_adapter import LightGBMAdapter, train_lightgbm, prepare_lightgbm_call
from .lightgbm_predict import multi_predict_lightgbm, predict_lightgbm_frame
from .sklearn_adapters import DecisionTreeAdapter, ForestAdapter

__all__ = [
    'get_adapter',
    'get_supported_engines',
    'LightGBMAdapter',
    'DecisionTreeAdapter',
    'ForestAdapter',
    'train_lightgbm',
    'prepare_lightgbm_call',
    'predict_lightgbm_frame',
    'multi_predict_lightgbm'
]
