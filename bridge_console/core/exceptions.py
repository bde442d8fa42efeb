"""
Error taxonomy for the console API.

Services raise these instead of HTTPException so the same code serves the
HTTP routes and the SessionContext; main.py maps them to status codes.
"""


class ConsoleError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(ConsoleError):
    """Credentials or session rejected by Supabase Auth. Never retried."""
    status_code = 401


class PermissionDeniedError(ConsoleError):
    status_code = 403


class NotFoundError(ConsoleError):
    status_code = 404


class QueryError(ConsoleError):
    """A PostgREST call failed; carries the backend's message."""
    status_code = 502

    @classmethod
    def from_exception(cls, exc: Exception, context: str = "") -> "QueryError":
        message = getattr(exc, "message", None) or str(exc)
        return cls(f"{context}: {message}" if context else message)
