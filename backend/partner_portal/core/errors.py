"""
Application errors

Raised by services and turned into {"success": false, "message": ...}
responses by the handler registered in main.create_app().
"""


class PortalError(Exception):
    """Base error carrying an HTTP status and a user facing message"""

    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(PortalError):
    """Required fields are missing"""
    status_code = 400
    default_message = "Bad request."


class ValidationError(BadRequest):
    """Submitted record failed validation"""
    default_message = "Validation failed."


class InvalidCredentials(PortalError):
    """Unknown user or wrong password (deliberately indistinguishable)"""
    status_code = 401
    default_message = "Invalid Username or Password."


class NotAuthenticated(PortalError):
    """No valid session"""
    status_code = 401
    default_message = "Not authenticated."


class Forbidden(PortalError):
    """Authenticated but not allowed"""
    status_code = 403
    default_message = "Access Denied."


class NotFound(PortalError):
    """Target is missing or not visible to the caller"""
    status_code = 404
    default_message = "Not found."


class ServerError(PortalError):
    """Database or infrastructure failure"""
    status_code = 500
    default_message = "A server error occurred."
