__all__ = ['EDAQAError', 'InvalidInput', 'FilterError']

class EDAQAError(Exception):
    """Base class for all errors raised by the EDA quality assessment."""

class InvalidInput(EDAQAError, ValueError):
    """
    Raised before any processing when the input series or the QA
    thresholds are structurally invalid (e.g., mismatched lengths or
    `eda_floor` >= `eda_ceiling`).
    """

class FilterError(EDAQAError, RuntimeError):
    """
    Raised when the EDA channel cannot be smoothed. The message carries
    the text of the underlying failure.
    """
