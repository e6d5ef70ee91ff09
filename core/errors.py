class SignalEngineError(Exception):
    """Base class for every failure raised by the signal engine and its collaborators."""


class InsufficientData(SignalEngineError):
    """Window shorter than the required lookback, or degenerate inputs (zero variance, zero volume)."""


class DataUnavailable(SignalEngineError):
    """Upstream candle fetch failed. Raised by collaborators, never retried by the engine."""


class ConfigurationError(SignalEngineError):
    """Invalid weight / threshold / period configuration."""
