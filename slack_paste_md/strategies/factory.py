"""Registry and cache of format strategies bound to one settings/maps pair.

The factory is an ordinary object: hosts create one, register strategies and
pass it where rendering happens. It is not thread-safe; callers serialise
update_dependencies against get_strategy_by_type.
"""

import logging
from typing import Callable, Optional

from ..settings import FormatSettings, ParsedMaps
from .base import BaseFormatStrategy
from .bracket import BracketFormatStrategy
from .standard import StandardFormatStrategy

logger = logging.getLogger(__name__)

StrategyConstructor = Callable[[FormatSettings, ParsedMaps], BaseFormatStrategy]


class StrategyFactory:
    def __init__(
        self,
        settings: Optional[FormatSettings] = None,
        maps: Optional[ParsedMaps] = None,
    ):
        self._constructors: dict[str, StrategyConstructor] = {}
        self._instances: dict[str, BaseFormatStrategy] = {}
        self.settings = settings
        self.maps = maps

    @property
    def registered_types(self) -> list[str]:
        return sorted(self._constructors)

    def register_strategy(
        self, strategy_type: str, constructor: StrategyConstructor
    ) -> None:
        """Register a constructor, replacing (and evicting) any previous one."""
        if strategy_type in self._constructors:
            logger.warning("Overwriting registered strategy '%s'", strategy_type)
            self._instances.pop(strategy_type, None)
        self._constructors[strategy_type] = constructor

    def update_dependencies(self, settings: FormatSettings, maps: ParsedMaps) -> None:
        """Bind new settings and maps; every cached instance is discarded."""
        self.settings = settings
        self.maps = maps
        self._instances.clear()

    def get_strategy_by_type(self, strategy_type: str) -> Optional[BaseFormatStrategy]:
        """Return the cached strategy for a type, constructing it on first use.

        Returns None (and logs) for unregistered types, missing dependencies or
        a failing constructor.
        """
        cached = self._instances.get(strategy_type)
        if cached is not None:
            return cached

        constructor = self._constructors.get(strategy_type)
        if constructor is None:
            logger.error(
                "Unknown strategy '%s' (registered: %s)",
                strategy_type,
                ", ".join(self.registered_types) or "none",
            )
            return None
        if self.settings is None or self.maps is None:
            logger.error(
                "Cannot create strategy '%s' before settings and maps are set",
                strategy_type,
            )
            return None

        try:
            strategy = constructor(self.settings, self.maps)
        except Exception as e:
            logger.error("Failed to create strategy '%s': %s", strategy_type, e)
            return None
        self._instances[strategy_type] = strategy
        return strategy

    def clear_strategies(self) -> None:
        self._instances.clear()


def create_default_factory(
    settings: Optional[FormatSettings] = None, maps: Optional[ParsedMaps] = None
) -> StrategyFactory:
    """Create a factory with the standard and bracket strategies registered."""
    factory = StrategyFactory(settings, maps)
    factory.register_strategy("standard", StandardFormatStrategy)
    factory.register_strategy("bracket", BracketFormatStrategy)
    return factory
