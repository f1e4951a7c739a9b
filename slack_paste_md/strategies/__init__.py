"""Markdown rendering strategies for grouped chat messages."""

from .base import (
    # State machine
    BlockOpenFor,
    BlockState,
    NoBlockOpen,
    # Base strategy
    BaseFormatStrategy,
)
from .bracket import BracketFormatStrategy
from .standard import StandardFormatStrategy
from .factory import (
    StrategyConstructor,
    StrategyFactory,
    create_default_factory,
)

__all__ = [
    "BaseFormatStrategy",
    "BlockOpenFor",
    "BlockState",
    "BracketFormatStrategy",
    "NoBlockOpen",
    "StandardFormatStrategy",
    "StrategyConstructor",
    "StrategyFactory",
    "create_default_factory",
]
