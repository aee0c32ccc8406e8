"""Exceptions raised by the simulator."""


class SimulationError(Exception):
    """Base class for simulator errors."""


class ConfigurationError(SimulationError, ValueError):
    """Invalid configuration. Always fatal at startup."""


class ForcedCardError(ConfigurationError):
    """Forced cards request more copies of a card than the shoe holds."""


class StrategyError(ConfigurationError):
    """A strategy is missing or malformed."""


class EmptyShoeError(SimulationError, IndexError):
    """A card was requested from an empty shoe."""
