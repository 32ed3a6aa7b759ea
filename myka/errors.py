"""
Error taxonomy shared by the services, the HTTP layer and the bot.

Every error carries the HTTP status it maps to; the Flask error handler in
``myka.web`` turns them into ``{"error": message}`` bodies.
"""

from __future__ import annotations


class MykaError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MykaError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(MykaError):
    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(MykaError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(MykaError):
    status_code = 404
    default_message = "Not found"


class PlatformUnsupportedError(MykaError):
    status_code = 501
    default_message = "Not supported on this platform"


class NetworkError(MykaError):
    """Transient failure of the data store or the notification platform."""

    status_code = 503
    default_message = "Service temporarily unavailable"
