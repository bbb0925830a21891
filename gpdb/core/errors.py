# gpdb/core/errors.py
# Exception types raised by gpdb outside of the orchestration loop.


class GpdbError(Exception):
    """Base class for gpdb errors."""


class ConfigurationError(GpdbError):
    """
    Raised when gpdb cannot be set up, e.g. no LLM provider is configured.
    These are surfaced to the user immediately and never retried.
    """


class ToolRegistrationError(GpdbError):
    """Raised when two different tools claim the same name."""
