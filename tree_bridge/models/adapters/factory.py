from typing import Dict, List, Type

from ..base import ModelAdapter
from .lightgbm_adapter import LightGBMAdapter
from .sklearn_adapters import DecisionTreeAdapter, ForestAdapter
from ...utils.exceptions import InvalidArgumentError

ADAPTERS: Dict[str, Type[ModelAdapter]] = {
    "lightgbm": LightGBMAdapter,
    "cart": DecisionTreeAdapter,
    "forest": ForestAdapter,
}


def get_adapter(engine: str) -> ModelAdapter:
    """Return an adapter instance for the requested engine."""
    engine = str(engine).lower()

    if engine not in ADAPTERS:
        raise InvalidArgumentError(
            f"Unsupported engine: {engine}. Available engines: {sorted(ADAPTERS)}",
            error_code="UNKNOWN_ENGINE",
            context={"engine": engine}
        )
    return ADAPTERS[engine]()


def get_supported_engines() -> List[str]:
    return sorted(ADAPTERS)
