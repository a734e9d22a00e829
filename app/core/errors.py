"""Typed engine failures and their HTTP status mapping."""


class EngineError(Exception):
    """Base class for every failure the engine reports to callers."""

    status_code = 500
    kind = "EngineError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class NotFound(EngineError):
    """Unknown simulation, step, choice or progress."""

    status_code = 404
    kind = "NotFound"


class InvalidChoice(EngineError):
    """The choice id is not offered on the current step."""

    status_code = 400
    kind = "InvalidChoice"


class InvalidState(EngineError):
    """Operation not allowed in the progress' current state."""

    status_code = 400
    kind = "InvalidState"


class MalformedDefinition(EngineError):
    """Catalog integrity violation. Raised only while loading the catalog."""

    status_code = 500
    kind = "MalformedDefinition"


class PersistenceError(EngineError):
    """Store unavailable, timed out or failed mid-write."""

    status_code = 500
    kind = "PersistenceError"


class ConcurrencyConflict(EngineError):
    """An optimistic write lost its race and retries were exhausted."""

    status_code = 409
    kind = "ConcurrencyConflict"
