class PatternError(Exception):
    """Base class for pattern generation failures."""


class InvalidArgumentError(PatternError, ValueError):
    """Raised before any work starts when the caller's input is unusable."""
