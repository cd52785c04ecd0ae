# tree_bridge/models/base.py
"""Core types shared by every engine adapter.

A fitted model is an explicit variant: ``FittedModel.kind`` says which
backend produced ``handle`` so prediction code dispatches on the tag
instead of probing the handle.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..config.model_config import BaseEngineConfig
from ..data.encoding import prepare_prediction_matrix
from ..utils.logger import get_logger

logger = get_logger(__name__)

CLASSIFICATION = "classification"
REGRESSION = "regression"
MODES = (CLASSIFICATION, REGRESSION)


class EngineKind(Enum):
    """Backend families wrapped by the shim."""

    DECISION_TREE = "decision_tree"
    FOREST = "forest"
    BOOSTED_ENSEMBLE = "boosted_ensemble"


@dataclass
class FittedModel:
    """A trained backend model plus what is needed to shape its predictions.

    Attributes:
        kind: Backend family that produced ``handle``
        mode: ``"classification"`` or ``"regression"``
        handle: The backend's own model object, never modified here
        levels: Outcome class levels in order (classification only)
        feature_names: Predictor column names seen at fit time
        categorical_levels: Level order of each categorical predictor at fit time
        metadata: Engine-specific extras such as evaluation logs
    """

    kind: EngineKind
    mode: str
    handle: Any
    levels: Optional[List[Any]] = None
    feature_names: List[str] = field(default_factory=list)
    categorical_levels: Dict[str, List[Any]] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_classification(self) -> bool:
        return self.mode == CLASSIFICATION

    def prediction_matrix(self, new_data: pd.DataFrame) -> np.ndarray:
        """Encode ``new_data`` with the columns and levels seen at fit time."""
        return prepare_prediction_matrix(new_data, self.feature_names, self.categorical_levels)


class ModelAdapter(ABC):
    """Base interface for engine adapters.

    An adapter fits its backend from an already-resolved predictor table,
    outcome vector and configuration record, and turns raw backend output
    into prediction frames.
    """

    kind: EngineKind
    config_class: type = BaseEngineConfig

    @abstractmethod
    def fit(
        self,
        x: pd.DataFrame,
        y: pd.Series,
        mode: str,
        config: BaseEngineConfig,
    ) -> FittedModel:
        """Train the backend and wrap the result."""

    @abstractmethod
    def predict(self, fitted: FittedModel, new_data: pd.DataFrame, type: str) -> pd.DataFrame:
        """Predict ``type`` ("numeric", "class", "prob", ...) for ``new_data``."""

    def supported_types(self, mode: str) -> List[str]:
        return ["numeric"] if mode == REGRESSION else ["class", "prob"]
