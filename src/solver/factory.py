"""
Strategy Factory Module - Registry and factory for solver strategies.
"""

import logging
from typing import Any, Dict, List, Type

from .base import SolverStrategy

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = "bfs"

# Registered strategy classes by name
_STRATEGIES: Dict[str, Type[SolverStrategy]] = {}


def register_strategy(cls: Type[SolverStrategy]) -> Type[SolverStrategy]:
    """
    Decorator registering a strategy class under its `name`.

    Usage:
        @register_strategy
        class DepthLimitedStrategy(SolverStrategy):
            name = "dls"
            ...

    Raises:
        ValueError: If another class already uses the name
    """
    existing = _STRATEGIES.get(cls.name)
    if existing is not None and existing is not cls:
        raise ValueError(f"Strategy name already registered: {cls.name}")
    _STRATEGIES[cls.name] = cls
    return cls


def create_strategy(name: str, **kwargs: Any) -> SolverStrategy:
    """
    Create a strategy instance by name.

    Args:
        name: Strategy name (e.g., "bfs")
        **kwargs: Passed to the strategy constructor

    Returns:
        Strategy instance

    Raises:
        ValueError: If strategy name not found
    """
    try:
        cls = _STRATEGIES[name]
    except KeyError:
        available = ", ".join(sorted(_STRATEGIES))
        raise ValueError(f"Unknown strategy: {name}. Available: {available}") from None
    return cls(**kwargs)


def resolve_strategy_name(name: str) -> str:
    """
    Map a configured strategy name to a registered one.

    Unknown names (e.g. from an old config file) fall back to the default.
    """
    if name in _STRATEGIES:
        return name
    fallback = get_default_strategy_name()
    logger.warning(f"Strategy '{name}' not registered, using '{fallback}'")
    return fallback


def get_strategy_names() -> List[str]:
    """Names of all registered strategies."""
    return list(_STRATEGIES.keys())


def get_strategy_info() -> List[Dict[str, Any]]:
    """
    Describe the registered strategies.

    Returns:
        List of dicts with 'name', 'description' and 'optimal' keys
    """
    return [
        {"name": cls.name, "description": cls.description, "optimal": cls.optimal}
        for cls in _STRATEGIES.values()
    ]


def get_default_strategy_name() -> str:
    """
    Default strategy name: "bfs" if registered, else the first registered one.
    """
    if DEFAULT_STRATEGY in _STRATEGIES:
        return DEFAULT_STRATEGY
    if _STRATEGIES:
        return next(iter(_STRATEGIES.keys()))
    return ""
