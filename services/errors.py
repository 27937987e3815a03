# services/errors.py - error taxonomy shared by the embed API
class EmbedError(Exception):
    """Base error carrying the HTTP status and a message safe to show callers."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message}


class NotFound(EmbedError):
    status_code = 404
    default_message = "Quiz not found"


class InvalidInput(EmbedError):
    status_code = 400
    default_message = "Invalid input"


class Forbidden(EmbedError):
    status_code = 403
    default_message = "This quiz cannot be embedded on this domain"


class Internal(EmbedError):
    status_code = 500
    default_message = "Failed to load quiz"
