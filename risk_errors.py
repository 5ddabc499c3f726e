"""
Error taxonomy for the risk engine.

- Validation errors reject a request before any downstream call.
- Upstream errors never leave a collaborator seam; callers degrade to "no data".
- Invariant errors are programming bugs and are fatal.
"""


class RiskEngineError(Exception):
    pass


class RequestValidationError(RiskEngineError, ValueError):
    """Raised when a request field is missing or invalid."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class InvalidCoordinate(RequestValidationError):
    pass


class UnknownCategory(RequestValidationError):
    pass


class UpstreamUnavailable(RiskEngineError):
    """An external collaborator failed or returned an unusable payload."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class AreaClassificationError(RiskEngineError, RuntimeError):
    """No classification rule matched; the rule table is broken."""
