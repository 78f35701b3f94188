"""Error types raised by probes and sessions."""


class PluginError(Exception):
    """Base class for every error the plugin reports to its caller."""


class InvalidArgument(PluginError, ValueError):
    """A parameter was present but unusable (empty host, bad count, ...)."""


class MissingField(InvalidArgument):
    """A required parameter was absent from the request."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} parameter is required")


class ResolutionFailure(PluginError):
    """Host name lookup failed or timed out.

    Never fatal: probes catch it and degrade to a placeholder address.
    """


class ExecutionCancelled(PluginError):
    """The caller abandoned the call through its cancellation token."""
