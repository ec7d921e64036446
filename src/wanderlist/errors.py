"""Error taxonomy for the progress and social-activity engine.

Every failure a command can surface is one of three kinds:

- ``PreconditionFailed``: the command is not allowed in the current state
  (objective not held, self-follow, duplicate key). Raised before any write.
- ``NotFound``: the command references an entity that no longer exists.
- ``StoreUnavailable``: the backing store or blob store failed. Writes that
  already completed are not rolled back.

The HTTP adapter maps these onto status codes via ``http_status``.
"""

from __future__ import annotations


class WanderlistError(Exception):
    """Base exception for all engine errors."""

    code = "error"
    http_status = 500

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_response(self) -> dict[str, str]:
        """Convert to the JSON error body."""
        return {"detail": self.message, "code": self.code}


class PreconditionFailed(WanderlistError):
    """The command's precondition does not hold; no writes were attempted."""

    code = "precondition_failed"
    http_status = 409


class NotFound(WanderlistError):
    """A referenced entity does not exist (or was deleted elsewhere)."""

    code = "not_found"
    http_status = 404


class StoreUnavailable(WanderlistError):
    """A persistence gateway or blob store call failed."""

    code = "store_unavailable"
    http_status = 503
