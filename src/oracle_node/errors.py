"""Error types for the oracle node simulator."""


class OracleNodeError(Exception):
    """Base class for oracle node errors."""
    def __init__(self, message, code='InternalError'):
        super().__init__(message)
        self.message = message
        self.code = code


class MetricsRegistrationError(OracleNodeError):
    """Metric families could not be registered. Fatal at startup."""
    def __init__(self, message):
        super().__init__(f"Failed to register metrics: {message}", "MetricsRegistrationError")


class ExportError(OracleNodeError):
    """Rendering the exposition text failed."""
    def __init__(self, message):
        super().__init__(message, "ExportError")


class ConfigurationError(OracleNodeError):
    """Invalid startup configuration."""
    def __init__(self, name, value, reason):
        super().__init__(f"Invalid value for {name}: {value!r} ({reason})", "ConfigurationError")
        self.name = name
        self.value = value
