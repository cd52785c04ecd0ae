# tree_bridge/models/adapters/sklearn_adapters.py
"""Single decision trees and random forests through scikit-learn.

Both adapters are pass-throughs: hyperparameters map one-to-one onto the
estimator's constructor, predictors go through the same categorical
encoding as LightGBM, and class levels travel as zero-based codes.
"""

from typing import Any, Dict

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from ..base import CLASSIFICATION, REGRESSION, EngineKind, FittedModel, ModelAdapter
from ...config.model_config import BaseEngineConfig, DecisionTreeConfig, ForestConfig
from ...data.encoding import (
    as_outcome,
    categorical_levels,
    decode_levels,
    encode_outcome,
    outcome_levels,
    prepare_matrix,
)
from ...utils.error_handling import backend_call_context
from ...utils.exceptions import InvalidArgumentError
from ...utils.logger import get_logger
from ...utils.timer import timed_operation

logger = get_logger(__name__)


class SklearnTreeAdapter(ModelAdapter):
    """Shared fit/predict logic; subclasses choose the estimator classes."""

    classifier_class: Any = None
    regressor_class: Any = None

    def _estimator_params(self, config: BaseEngineConfig) -> Dict[str, Any]:
        return config.estimator_params()

    def fit(
        self,
        x: pd.DataFrame,
        y: pd.Series,
        mode: str,
        config: BaseEngineConfig,
    ) -> FittedModel:
        y = as_outcome(y)
        estimator_class = self.classifier_class if mode == CLASSIFICATION else self.regressor_class
        estimator = estimator_class(**self._estimator_params(config))

        logger.info(f"Training {estimator_class.__name__} on {x.shape[0]} rows, {x.shape[1]} columns")

        name = self.__class__.__name__
        with timed_operation(f"{self.kind.value}_training"):
            with backend_call_context(f"{estimator_class.__name__}.fit", name, n_rows=x.shape[0]):
                estimator.fit(prepare_matrix(x), encode_outcome(y))

        return FittedModel(
            kind=self.kind,
            mode=mode,
            handle=estimator,
            levels=outcome_levels(y) if mode == CLASSIFICATION else None,
            feature_names=[str(name) for name in x.columns],
            categorical_levels=categorical_levels(x),
        )

    def _predict_prob(self, fitted: FittedModel, new_data: pd.DataFrame) -> pd.DataFrame:
        raw = fitted.handle.predict_proba(fitted.prediction_matrix(new_data))
        # Levels absent from the training rows have no column in predict_proba
        probs = np.zeros((len(new_data), len(fitted.levels)))
        probs[:, fitted.handle.classes_.astype(int)] = raw
        return pd.DataFrame(probs, columns=[f".pred_{level}" for level in fitted.levels])

    def predict(self, fitted: FittedModel, new_data: pd.DataFrame, type: str) -> pd.DataFrame:
        if fitted.mode == REGRESSION and type == "numeric":
            return pd.DataFrame({".pred": fitted.handle.predict(fitted.prediction_matrix(new_data))})

        if fitted.mode == CLASSIFICATION and type == "prob":
            return self._predict_prob(fitted, new_data)

        if fitted.mode == CLASSIFICATION and type == "class":
            codes = fitted.handle.predict(fitted.prediction_matrix(new_data)).astype(int)
            return pd.DataFrame({".pred_class": decode_levels(codes, fitted.levels)})

        raise InvalidArgumentError(
            f"Prediction type '{type}' is not available for {fitted.mode} models "
            f"of engine kind '{fitted.kind.value}'",
            error_code="PREDICTION_TYPE_INVALID",
            context={"type": type, "mode": fitted.mode}
        )


class DecisionTreeAdapter(SklearnTreeAdapter):
    """A single CART decision tree."""

    kind = EngineKind.DECISION_TREE
    config_class = DecisionTreeConfig
    classifier_class = DecisionTreeClassifier
    regressor_class = DecisionTreeRegressor


class ForestAdapter(SklearnTreeAdapter):
    """A random forest of decision trees."""

    kind = EngineKind.FOREST
    config_class = ForestConfig
    classifier_class = RandomForestClassifier
    regressor_class = RandomForestRegressor
