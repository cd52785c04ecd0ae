# tree_bridge/models/adapters/lightgbm_adapter.py
"""LightGBM adapter: from a typed configuration to an ``lgb.train`` call.

Training runs through a fixed sequence of steps, each consuming the
predictor table or outcome vector and annotating a ``LightGBMArgs`` bundle:

1. ``process_feature_fraction``: count/proportion interpretation of the
   feature-sampling parameter.
2. ``process_objective_function``: regression, binary or multiclass,
   derived from the outcome.
3. ``process_parallelism``: thread count moved into the parameters.
4. ``process_data``: train/validation partitions as ``lgb.Dataset`` objects.
5. ``sort_args``: guarded arguments dropped, the rest split between
   backend parameters and ``lgb.train`` arguments.

``build_lightgbm_call`` then assembles the final invocation.
"""

import contextlib
import io
import math
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import joblib
import lightgbm as lgb
import numpy as np
import pandas as pd
from sklearn.utils import check_random_state

from .lightgbm_predict import predict_lightgbm_frame
from ..base import CLASSIFICATION, REGRESSION, EngineKind, FittedModel, ModelAdapter
from ...config.model_config import LightGBMConfig, TuneMarker, is_tune_marker
from ...data.encoding import (
    as_outcome,
    categorical_columns,
    categorical_levels,
    encode_outcome,
    is_categorical,
    outcome_levels,
    prepare_matrix,
)
from ...utils.error_handling import backend_call_context
from ...utils.exceptions import (
    DataValidationError,
    DroppedArgumentWarning,
    InvalidArgumentError,
    UnresolvedTuningPlaceholderError,
    create_error_context,
    validate_flag,
)
from ...utils.logger import get_logger
from ...utils.timer import timed_operation

logger = get_logger(__name__)

# Arguments the shim controls itself; never forwarded to lgb.train.
PROTECTED_ARGS = frozenset({
    "fobj",
    "init_model",
    "feature_name",
    "categorical_feature",
    "callbacks",
    "keep_training_booster",
})

# Arguments that stay with the training call; everything else is a parameter.
MAIN_ARGS = frozenset({
    "num_boost_round",
    "feval",
    "verbose",
    "record",
    "eval_freq",
    "early_stopping_rounds",
    "train_set",
    "valid_sets",
})

DEFAULT_VERBOSE = 1
VALIDATION_SET_NAME = "validation"


@dataclass
class LightGBMArgs:
    """Backend parameters (``params``) and training-call arguments (``main``)."""

    params: Dict[str, Any] = field(default_factory=dict)
    main: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PartitionIndex:
    """Zero-based row indices of the training and validation partitions."""

    train: np.ndarray
    validation: Optional[np.ndarray] = None


def default_num_threads() -> int:
    """Degree of parallelism of the active joblib context, 1 outside any context."""
    return joblib.effective_n_jobs(None)


# ---------------------------------------------------------------------------
# Hyperparameter normalization
# ---------------------------------------------------------------------------


def process_feature_fraction(
    feature_fraction: Union[float, TuneMarker],
    counts: bool,
    x: pd.DataFrame,
    is_missing: bool,
) -> float:
    """Resolve the feature-sampling parameter to a proportion of columns.

    Args:
        feature_fraction: Number of columns (``counts=True``) or proportion
        counts: Interpretation of ``feature_fraction``
        x: Predictor table, for its column count
        is_missing: True when the caller did not supply the value

    Returns:
        The proportion handed to LightGBM

    Raises:
        InvalidArgumentError: If ``counts`` is not boolean or the value
            contradicts its interpretation
        UnresolvedTuningPlaceholderError: If the value is a ``tune()`` marker
    """
    validate_flag("counts", counts)

    if is_tune_marker(feature_fraction):
        raise UnresolvedTuningPlaceholderError(
            "The supplied `feature_fraction` parameter is a call to `tune()`. Did you forget "
            "to optimize hyperparameters with a tuning function before fitting?",
            error_code="UNRESOLVED_TUNE",
            context={"parameters": ["feature_fraction"]}
        )

    inequality = "greater" if counts else "less"
    interpretation = "count" if counts else "proportion"
    opposite = "proportion" if counts else "count"

    if (counts and feature_fraction < 1) or (not counts and feature_fraction > 1):
        raise InvalidArgumentError(
            f"The supplied argument `feature_fraction = {feature_fraction}` must be "
            f"{inequality} than or equal to 1.\n\n`feature_fraction` is currently being "
            f"interpreted as a {interpretation} rather than a {opposite}. Supply "
            f"`counts = {not counts}` to supply this argument as a {opposite} rather "
            f"than a {interpretation}.",
            error_code="FEATURE_FRACTION_CONFLICT",
            context=create_error_context(feature_fraction=feature_fraction, counts=counts)
        )

    if counts and not is_missing:
        n_columns = x.shape[1]
        if feature_fraction > n_columns:
            logger.warning(
                f"`feature_fraction = {feature_fraction}` exceeds the {n_columns} available "
                f"columns; using all of them"
            )
            feature_fraction = n_columns
        return feature_fraction / n_columns

    return feature_fraction


# ---------------------------------------------------------------------------
# Objective and parallelism
# ---------------------------------------------------------------------------


def process_objective_function(args: LightGBMArgs, y: pd.Series) -> LightGBMArgs:
    """Set ``params["objective"]`` (and ``num_class``) from the outcome.

    An objective passed among the training-call arguments is adopted as is.
    Otherwise numeric outcomes train with ``"regression"``, two-level
    categoricals with ``"binary"`` (``num_class = 1``) and anything with
    more levels with ``"multiclass"`` (``num_class`` = number of levels).
    """
    if "objective" in args.main:
        args.params["objective"] = args.main["objective"]
    elif not is_categorical(y):
        args.params["objective"] = "regression"
    else:
        n_levels = len(y.cat.categories)
        if n_levels == 2:
            args.params["num_class"] = 1
            args.params["objective"] = "binary"
        else:
            args.params["num_class"] = n_levels
            args.params["objective"] = "multiclass"

    args.main.pop("objective", None)
    logger.debug(f"Resolved objective: {args.params['objective']}")
    return args


def process_parallelism(args: LightGBMArgs, num_threads: int) -> LightGBMArgs:
    """Place the thread count in the parameters.

    A thread count passed among the training-call arguments is promoted and
    takes precedence over the ``num_threads`` argument.
    """
    if "num_threads" in args.main:
        args.params["num_threads"] = args.main.pop("num_threads")
    else:
        args.params["num_threads"] = num_threads
    return args


# ---------------------------------------------------------------------------
# Partitioning
# ---------------------------------------------------------------------------


def build_partition_index(
    n: int,
    validation: float,
    missing_validation: bool,
    early_stopping_rounds: Optional[int],
    random_state: Any = None,
) -> PartitionIndex:
    """Choose the training and validation rows.

    Without an explicit ``validation`` proportion every row trains; the
    same rows then also validate when early stopping needs a validation
    set. With one, ``max(m, 2)`` rows are sampled for training, where
    ``m = min(floor(n * (1 - validation)) + 1, n - 1)``, and the rest
    validate.

    Args:
        n: Number of rows
        validation: Proportion of rows held out
        missing_validation: True when ``validation`` was not supplied
        early_stopping_rounds: Early-stopping patience, None for none
        random_state: Seed or ``RandomState``; None uses numpy's global state

    Raises:
        InvalidArgumentError: If a split is requested on fewer than 3 rows
    """
    needs_validation = early_stopping_rounds is not None
    all_rows = np.arange(n)

    if missing_validation:
        return PartitionIndex(train=all_rows, validation=all_rows if needs_validation else None)

    if n < 3:
        raise InvalidArgumentError(
            f"A validation split needs at least 3 rows, got {n}",
            error_code="TOO_FEW_ROWS",
            context={"n_rows": n, "validation": validation}
        )

    m = min(math.floor(n * (1 - validation)) + 1, n - 1)
    rng = check_random_state(random_state)
    train_index = rng.choice(n, size=max(m, 2), replace=False)
    validation_index = np.setdiff1d(all_rows, train_index)

    return PartitionIndex(train=train_index, validation=validation_index)


def make_dataset(x: pd.DataFrame, label: np.ndarray) -> lgb.Dataset:
    """Build an ``lgb.Dataset`` with categorical columns encoded and declared."""
    return lgb.Dataset(
        data=prepare_matrix(x),
        label=label,
        feature_name=[str(name) for name in x.columns],
        categorical_feature=categorical_columns(x),
        params={"feature_pre_filter": False},
        free_raw_data=False,
    )


def process_data(
    args: LightGBMArgs,
    x: pd.DataFrame,
    label: np.ndarray,
    validation: float,
    missing_validation: bool,
    early_stopping_rounds: Optional[int],
    random_state: Any = None,
) -> LightGBMArgs:
    """Attach ``train_set`` and, when there is one, ``valid_sets`` to ``args.main``."""
    index = build_partition_index(
        x.shape[0], validation, missing_validation, early_stopping_rounds, random_state
    )
    logger.debug(
        f"Partitioned {x.shape[0]} rows: {len(index.train)} training, "
        f"{0 if index.validation is None else len(index.validation)} validation"
    )

    args.main["train_set"] = make_dataset(x.iloc[index.train], label[index.train])

    if index.validation is not None:
        args.main["valid_sets"] = {
            VALIDATION_SET_NAME: make_dataset(x.iloc[index.validation], label[index.validation])
        }

    return args


# ---------------------------------------------------------------------------
# Argument routing
# ---------------------------------------------------------------------------


def sort_args(args: LightGBMArgs) -> LightGBMArgs:
    """Drop guarded arguments and move parameters out of the call arguments.

    Guarded names trigger a ``DroppedArgumentWarning``. Remaining
    training-call arguments outside ``MAIN_ARGS`` become parameters; a
    parameter that is already set keeps its value, with a
    ``DroppedArgumentWarning`` when the pass-through value differs.
    """
    protected = [name for name in args.main if name in PROTECTED_ARGS]
    if protected:
        warnings.warn(
            "The following argument(s) are guarded by tree_bridge and will not be "
            f"passed to `lgb.train`: {', '.join(protected)}",
            DroppedArgumentWarning,
            stacklevel=2,
        )
        for name in protected:
            del args.main[name]

    relocated = [name for name in args.main if name not in MAIN_ARGS]
    shadowed = []
    for name in relocated:
        value = args.main.pop(name)
        if name not in args.params:
            args.params[name] = value
        elif args.params[name] != value:
            shadowed.append(f"{name}={value!r} (kept {args.params[name]!r})")

    if shadowed:
        warnings.warn(
            "Pass-through argument(s) already set as parameters were ignored: "
            f"{', '.join(shadowed)}. Set them through the matching config field instead",
            DroppedArgumentWarning,
            stacklevel=2,
        )

    if relocated:
        logger.debug(f"Moved to lgb.train params: {relocated}")

    return args


@dataclass
class LightGBMCall:
    """A fully assembled ``lgb.train`` invocation.

    ``evaluation_log`` is filled by the ``record_evaluation`` callback while
    the call runs.
    """

    params: Dict[str, Any]
    train_set: lgb.Dataset
    kwargs: Dict[str, Any] = field(default_factory=dict)
    quiet: bool = False
    evaluation_log: Dict[str, Any] = field(default_factory=dict)

    def run(self) -> lgb.Booster:
        """Call ``lgb.train``; backend errors propagate unchanged."""
        with backend_call_context(
            "lgb.train",
            "LightGBMAdapter",
            objective=self.params.get("objective"),
            num_iterations=self.params.get("num_iterations"),
            has_validation="valid_sets" in self.kwargs,
        ):
            if self.quiet:
                with contextlib.redirect_stdout(io.StringIO()):
                    return lgb.train(self.params, **self.kwargs, train_set=self.train_set)
            return lgb.train(self.params, **self.kwargs, train_set=self.train_set)


def build_lightgbm_call(args: LightGBMArgs, quiet: bool = False) -> LightGBMCall:
    """Turn a routed bundle into an ``lgb.train`` invocation.

    ``verbose`` becomes the LightGBM ``verbose`` parameter (-1 when
    ``quiet``); early stopping, evaluation logging and recording become
    callbacks; the validation collection becomes ``valid_sets`` and
    ``valid_names``.
    """
    params = dict(args.params)
    main = dict(args.main)

    train_set = main.pop("train_set")
    valid_sets: Dict[str, lgb.Dataset] = main.pop("valid_sets", None) or {}
    verbose = main.pop("verbose", DEFAULT_VERBOSE)
    show_progress = verbose > 0 and not quiet
    params["verbose"] = -1 if quiet else verbose

    kwargs: Dict[str, Any] = {}
    callbacks: List[Any] = []
    evaluation_log: Dict[str, Any] = {}

    if valid_sets:
        kwargs["valid_sets"] = list(valid_sets.values())
        kwargs["valid_names"] = list(valid_sets.keys())

    early_stopping_rounds = main.pop("early_stopping_rounds", None)
    if early_stopping_rounds is not None:
        callbacks.append(lgb.early_stopping(early_stopping_rounds, verbose=show_progress))

    eval_freq = main.pop("eval_freq", 1)
    if valid_sets and show_progress:
        callbacks.append(lgb.log_evaluation(period=eval_freq))

    if main.pop("record", True) and valid_sets:
        callbacks.append(lgb.record_evaluation(evaluation_log))

    for name in ("num_boost_round", "feval"):
        if name in main:
            kwargs[name] = main.pop(name)

    if callbacks:
        kwargs["callbacks"] = callbacks

    return LightGBMCall(
        params=params,
        train_set=train_set,
        kwargs=kwargs,
        quiet=quiet,
        evaluation_log=evaluation_log,
    )


# ---------------------------------------------------------------------------
# Training entry points
# ---------------------------------------------------------------------------


def _check_training_data(x: pd.DataFrame, y: pd.Series) -> None:
    if not isinstance(x, pd.DataFrame):
        raise DataValidationError(
            f"Predictors must be a pandas DataFrame, got {type(x).__name__}",
            error_code="PREDICTORS_NOT_DATAFRAME"
        )
    if len(x) != len(y):
        raise DataValidationError(
            f"Predictors and outcome must have the same length: {len(x)} vs {len(y)}",
            error_code="LENGTH_MISMATCH",
            context={"n_predictor_rows": len(x), "n_outcome_rows": len(y)}
        )


def prepare_lightgbm_call(
    x: pd.DataFrame,
    y: Any,
    config: Optional[LightGBMConfig] = None,
    num_threads: Optional[int] = None,
) -> LightGBMCall:
    """Validate inputs and assemble the ``lgb.train`` invocation without running it.

    Args:
        x: Predictor table
        y: Outcome vector (numeric or categorical)
        config: LightGBM hyperparameters, defaults when None
        num_threads: Thread count; defaults to ``config.num_threads``, then to
            ``default_num_threads()``

    Returns:
        The assembled ``LightGBMCall``
    """
    config = config if config is not None else LightGBMConfig()
    y = as_outcome(y)
    _check_training_data(x, y)

    feature_fraction = process_feature_fraction(
        feature_fraction=1.0 if config.feature_fraction_missing else config.feature_fraction,
        counts=config.counts,
        x=x,
        is_missing=config.feature_fraction_missing,
    )

    main: Dict[str, Any] = {}
    if config.early_stopping_rounds is not None:
        main["early_stopping_rounds"] = config.early_stopping_rounds
    main.update(config.engine_args)

    args = LightGBMArgs(
        params={
            "num_iterations": config.num_iterations,
            "learning_rate": config.learning_rate,
            "max_depth": config.max_depth,
            "feature_fraction": feature_fraction,
            "min_data_in_leaf": config.min_data_in_leaf,
            "min_gain_to_split": config.min_gain_to_split,
            "bagging_fraction": config.bagging_fraction,
        },
        main=main,
    )

    args = process_objective_function(args, y)
    label = encode_outcome(y)

    if num_threads is None:
        num_threads = config.num_threads if config.num_threads is not None else default_num_threads()
    args = process_parallelism(args, num_threads)

    args = process_data(
        args,
        x,
        label,
        validation=0.0 if config.validation_missing else config.validation,
        missing_validation=config.validation_missing,
        early_stopping_rounds=config.early_stopping_rounds,
        random_state=config.random_state,
    )

    args = sort_args(args)
    args.main.setdefault("verbose", DEFAULT_VERBOSE)

    return build_lightgbm_call(args, quiet=config.quiet)


def train_lightgbm(
    x: pd.DataFrame,
    y: Any,
    config: Optional[LightGBMConfig] = None,
    num_threads: Optional[int] = None,
) -> lgb.Booster:
    """Fit a LightGBM booster from a predictor table and outcome vector.

    Example:
        >>> booster = train_lightgbm(x, y, LightGBMConfig(feature_fraction=2))
    """
    call = prepare_lightgbm_call(x, y, config, num_threads)
    with timed_operation("lightgbm_training"):
        return call.run()


class LightGBMAdapter(ModelAdapter):
    """Gradient-boosted ensembles through LightGBM."""

    kind = EngineKind.BOOSTED_ENSEMBLE
    config_class = LightGBMConfig

    def fit(
        self,
        x: pd.DataFrame,
        y: pd.Series,
        mode: str,
        config: LightGBMConfig,
    ) -> FittedModel:
        logger.info(f"Training LightGBM {mode} model on {x.shape[0]} rows, {x.shape[1]} columns")
        y = as_outcome(y)
        call = prepare_lightgbm_call(x, y, config)

        with timed_operation("lightgbm_training"):
            booster = call.run()

        return FittedModel(
            kind=self.kind,
            mode=mode,
            handle=booster,
            levels=outcome_levels(y) if mode == CLASSIFICATION else None,
            feature_names=[str(name) for name in x.columns],
            categorical_levels=categorical_levels(x),
            metadata={
                "params": call.params,
                "evaluation_log": call.evaluation_log,
                "best_iteration": booster.best_iteration,
            },
        )

    def predict(self, fitted: FittedModel, new_data: pd.DataFrame, type: str) -> pd.DataFrame:
        return predict_lightgbm_frame(fitted, new_data, type)

    def supported_types(self, mode: str) -> List[str]:
        return ["numeric"] if mode == REGRESSION else ["class", "prob", "raw"]
