# tests/test_trainer.py
"""End-to-end tests of fit_model / predict_model / multi_predict with real backends."""

import lightgbm as lgb
import numpy as np
import pandas as pd
import pytest

from tree_bridge.config.model_config import ForestConfig, LightGBMConfig, tune
from tree_bridge.models.base import CLASSIFICATION, REGRESSION, EngineKind
from tree_bridge.models.trainer import fit_model, multi_predict, predict_model
from tree_bridge.utils.exceptions import (
    DataValidationError,
    DroppedArgumentWarning,
    InvalidArgumentError,
    UnresolvedTuningPlaceholderError,
)


@pytest.mark.integration
class TestLightGBMEndToEnd:
    """Boosted ensembles through the front door."""

    def test_multiclass_probabilities(self, multiclass_data):
        x, y = multiclass_data

        fitted = fit_model("lightgbm", x, y, num_iterations=20, feature_fraction=1, quiet=True)
        probs = predict_model(fitted, x, type="prob")

        assert fitted.kind is EngineKind.BOOSTED_ENSEMBLE
        assert fitted.mode == CLASSIFICATION
        assert isinstance(fitted.handle, lgb.Booster)
        assert fitted.metadata["params"]["feature_fraction"] == 0.5
        assert list(probs.columns) == [".pred_high", ".pred_low", ".pred_mid"]
        assert probs.shape == (150, 3)
        np.testing.assert_allclose(probs.sum(axis=1), 1.0)

    def test_default_prediction_is_class(self, multiclass_data):
        x, y = multiclass_data
        fitted = fit_model("lightgbm", x, y, num_iterations=20, quiet=True)

        classes = predict_model(fitted, x)

        assert list(classes.columns) == [".pred_class"]
        assert list(classes[".pred_class"].cat.categories) == ["high", "low", "mid"]
        probs = predict_model(fitted, x, type="prob")
        winners = probs.to_numpy().argmax(axis=1)
        assert classes[".pred_class"].cat.codes.tolist() == winners.tolist()

    def test_raw_scores(self, multiclass_data):
        x, y = multiclass_data
        fitted = fit_model("lightgbm", x, y, num_iterations=5, quiet=True)

        raw = predict_model(fitted, x, type="raw")

        assert list(raw.columns) == [".pred_raw_0", ".pred_raw_1", ".pred_raw_2"]

    def test_binary_with_early_stopping(self, binary_data):
        x, y = binary_data

        fitted = fit_model(
            "lightgbm", x, y,
            num_iterations=200,
            early_stopping_rounds=5,
            validation=0.3,
            random_state=1,
            quiet=True,
        )
        probs = predict_model(fitted, x, type="prob")

        assert list(probs.columns) == [".pred_no", ".pred_yes"]
        np.testing.assert_allclose(probs.sum(axis=1), 1.0)
        assert "validation" in fitted.metadata["evaluation_log"]
        assert 0 < fitted.metadata["best_iteration"] <= 200

    def test_regression_numeric(self, regression_data):
        x, y = regression_data

        fitted = fit_model("lightgbm", x, y, num_iterations=50, quiet=True)
        preds = predict_model(fitted, x)

        assert fitted.mode == REGRESSION
        assert list(preds.columns) == [".pred"]
        assert np.corrcoef(preds[".pred"], y)[0, 1] > 0.8

    def test_regression_rejects_prob(self, regression_data):
        x, y = regression_data
        fitted = fit_model("lightgbm", x, y, num_iterations=5, quiet=True)

        with pytest.raises(InvalidArgumentError):
            predict_model(fitted, x, type="prob")

    def test_string_labels_mean_classification(self, binary_data):
        x, y = binary_data

        fitted = fit_model("lightgbm", x, y.astype(str).to_numpy(), num_iterations=5, quiet=True)

        assert fitted.mode == CLASSIFICATION
        assert fitted.levels == ["no", "yes"]

    def test_guarded_argument_dropped(self, regression_data):
        x, y = regression_data

        with pytest.warns(DroppedArgumentWarning, match="init_model"):
            fitted = fit_model("lightgbm", x, y, num_iterations=5, quiet=True, init_model="model.txt")

        assert "init_model" not in fitted.metadata["params"]

    def test_config_record(self, regression_data):
        x, y = regression_data
        config = LightGBMConfig(num_iterations=3, quiet=True)

        fitted = fit_model("lightgbm", x, y, config=config)

        assert fitted.handle.current_iteration() == 3


@pytest.mark.integration
class TestDefaultMulticlassScenario:
    """Default hyperparameters on a three-class outcome, no early stopping."""

    def test_training_call_and_probabilities(self, monkeypatch, multiclass_data):
        x, y = multiclass_data
        real_train = lgb.train
        calls = []

        def recording_train(params, **kwargs):
            calls.append((dict(params), kwargs))
            return real_train(params, **kwargs)

        monkeypatch.setattr(lgb, "train", recording_train)

        fitted = fit_model("lightgbm", x, y, quiet=True)
        probs = predict_model(fitted, x.iloc[:10], type="prob")

        params, kwargs = calls[0]
        assert params["objective"] == "multiclass"
        assert params["num_class"] == 3
        assert isinstance(kwargs["train_set"], lgb.Dataset)
        assert "valid_sets" not in kwargs
        assert probs.shape == (10, 3)
        assert list(probs.columns) == [".pred_high", ".pred_low", ".pred_mid"]
        np.testing.assert_allclose(probs.sum(axis=1), 1.0)


@pytest.mark.integration
class TestMultiPredict:
    """Staged predictions from a real booster."""

    def test_checkpoints_ascending(self, regression_data):
        x, y = regression_data
        fitted = fit_model("lightgbm", x, y, num_iterations=10, quiet=True)

        result = multi_predict(fitted, x.iloc[:5], trees=[5, 1, 3])

        assert len(result) == 5
        for cell in result[".pred"]:
            assert cell["trees"].tolist() == [1, 3, 5]

    def test_last_checkpoint_matches_full_prediction(self, regression_data):
        x, y = regression_data
        fitted = fit_model("lightgbm", x, y, num_iterations=10, quiet=True)

        staged = multi_predict(fitted, x.iloc[:3], trees=[10])
        full = predict_model(fitted, x.iloc[:3])

        np.testing.assert_allclose(
            [cell[".pred"].iloc[0] for cell in staged[".pred"]],
            full[".pred"],
        )

    def test_classification_cells(self, multiclass_data):
        x, y = multiclass_data
        fitted = fit_model("lightgbm", x, y, num_iterations=6, quiet=True)

        result = multi_predict(fitted, x.iloc[:2], trees=[2, 4], type="class")

        assert list(result[".pred"].iloc[0].columns) == ["trees", ".pred_class"]

    def test_not_available_for_forests(self, regression_data):
        x, y = regression_data
        fitted = fit_model("forest", x, y, trees=5)

        with pytest.raises(InvalidArgumentError) as exc_info:
            multi_predict(fitted, x, trees=[1])
        assert exc_info.value.error_code == "MULTI_PREDICT_UNSUPPORTED"


@pytest.mark.integration
class TestSklearnEngines:
    """Decision trees and forests through the front door."""

    def test_cart_classification(self, multiclass_data):
        x, y = multiclass_data

        fitted = fit_model("cart", x, y, tree_depth=4, random_state=0)
        probs = predict_model(fitted, x, type="prob")

        assert fitted.kind is EngineKind.DECISION_TREE
        assert list(probs.columns) == [".pred_high", ".pred_low", ".pred_mid"]

    def test_forest_config_record(self, regression_data):
        x, y = regression_data

        fitted = fit_model("forest", x, y, config=ForestConfig(trees=10, random_state=0))

        assert fitted.kind is EngineKind.FOREST
        assert len(predict_model(fitted, x)) == len(x)


@pytest.mark.integration
class TestPredictorLevelsAtPrediction:
    """Categorical predictors keep their fit-time level codes at prediction time."""

    @pytest.fixture
    def step_data(self):
        levels = np.repeat(["a", "b", "c"], 150)
        x = pd.DataFrame({"cat": pd.Categorical(levels, categories=["a", "b", "c"])})
        y = pd.Series(np.select([levels == "b", levels == "c"], [10.0, 20.0], default=0.0), name="y")
        return x, y

    @pytest.mark.parametrize("engine, params", [
        ("lightgbm", {"num_iterations": 100, "learning_rate": 0.3, "min_data_per_group": 1, "quiet": True}),
        ("cart", {}),
    ])
    def test_subset_of_levels(self, step_data, engine, params):
        x, y = step_data
        fitted = fit_model(engine, x, y, **params)

        new_data = pd.DataFrame({"cat": pd.Categorical(["b", "c"])})
        preds = predict_model(fitted, new_data)

        np.testing.assert_allclose(preds[".pred"], [10.0, 20.0], atol=0.5)
        assert fitted.categorical_levels == {"cat": ["a", "b", "c"]}

    def test_staged_predictions_use_training_codes(self, step_data):
        x, y = step_data
        fitted = fit_model("lightgbm", x, y, num_iterations=100, learning_rate=0.3,
                           min_data_per_group=1, quiet=True)

        result = multi_predict(fitted, pd.DataFrame({"cat": ["c"]}), trees=[100])

        assert result[".pred"].iloc[0][".pred"].iloc[0] == pytest.approx(20.0, abs=0.5)

    def test_unseen_level(self, step_data):
        x, y = step_data
        fitted = fit_model("cart", x, y)

        with pytest.raises(DataValidationError) as exc_info:
            predict_model(fitted, pd.DataFrame({"cat": pd.Categorical(["d"])}))
        assert exc_info.value.error_code == "UNKNOWN_LEVELS"


@pytest.mark.unit
class TestFrontDoorValidation:
    """Argument checks performed before any backend runs."""

    def test_numeric_outcome_for_classification(self, regression_data):
        x, y = regression_data

        with pytest.raises(DataValidationError) as exc_info:
            fit_model("lightgbm", x, y, mode="classification")
        assert exc_info.value.error_code == "OUTCOME_NOT_CATEGORICAL"

    def test_categorical_outcome_for_regression(self, binary_data):
        x, y = binary_data

        with pytest.raises(DataValidationError):
            fit_model("cart", x, y, mode="regression")

    def test_unknown_mode(self, regression_data):
        x, y = regression_data

        with pytest.raises(InvalidArgumentError):
            fit_model("lightgbm", x, y, mode="censored regression")

    def test_unknown_engine(self, regression_data):
        x, y = regression_data

        with pytest.raises(InvalidArgumentError):
            fit_model("rpart", x, y)

    def test_config_and_params_together(self, regression_data):
        x, y = regression_data

        with pytest.raises(InvalidArgumentError) as exc_info:
            fit_model("lightgbm", x, y, config=LightGBMConfig(), num_iterations=5)
        assert exc_info.value.error_code == "CONFIG_AND_PARAMS"

    def test_config_for_other_engine(self, regression_data):
        x, y = regression_data

        with pytest.raises(InvalidArgumentError) as exc_info:
            fit_model("cart", x, y, config=LightGBMConfig())
        assert exc_info.value.error_code == "CONFIG_TYPE_MISMATCH"

    def test_unresolved_tune(self, regression_data):
        x, y = regression_data

        with pytest.raises(UnresolvedTuningPlaceholderError):
            fit_model("lightgbm", x, y, learning_rate=tune())

    def test_feature_fraction_conflict(self, regression_data):
        x, y = regression_data

        with pytest.raises(InvalidArgumentError, match="Supply `counts = False`"):
            fit_model("lightgbm", x, y, feature_fraction=0.5)

    def test_unknown_prediction_type(self, regression_data):
        x, y = regression_data
        fitted = fit_model("cart", x, y)

        with pytest.raises(InvalidArgumentError) as exc_info:
            predict_model(fitted, x, type="quantile")
        assert exc_info.value.error_code == "PREDICTION_TYPE_INVALID"

    def test_string_predictor_column(self, regression_data):
        x, y = regression_data
        x = x.assign(label="a")

        with pytest.raises(DataValidationError):
            fit_model("lightgbm", x, y, quiet=True)
