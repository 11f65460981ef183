from typing import Any, Dict, Optional

from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """
    Base class for errors the API reports to clients.
    `extra` holds additional JSON fields rendered next to the message.
    """
    status_code = 500

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=type(self).status_code, detail=message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, **self.extra}


class ValidationFailed(ApiError):
    status_code = 400

    def __init__(self, errors, extra: Optional[Dict[str, Any]] = None):
        if isinstance(errors, str):
            errors = [errors]
        super().__init__(errors[0], {"errors": list(errors), **(extra or {})})
        self.errors = list(errors)


class Conflict(ApiError):
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        payload = dict(extra or {})
        if field:
            payload["field"] = field
        super().__init__(message, payload)
        self.field = field


class Unauthorized(ApiError):
    status_code = 401


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


def internal_error_payload(e: Exception, debug: bool) -> Dict[str, Any]:
    """
    Build the client-facing body for an unexpected error.
    Details are only included outside production.
    """
    logger.error(f"Unhandled error: {str(e)}", exc_info=e)
    payload: Dict[str, Any] = {"message": "Internal server error"}
    if debug:
        import traceback

        payload["error"] = str(e)
        payload["stack"] = "".join(traceback.format_exception(type(e), e, e.__traceback__))
    return payload
