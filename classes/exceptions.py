class QuizAppError(Exception):
    """Base error carrying the HTTP status the API answers with."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.message}


class InvalidInput(QuizAppError):
    status_code = 400


class Unauthorized(QuizAppError):
    status_code = 401


class Forbidden(QuizAppError):
    status_code = 403


class NotFound(QuizAppError):
    status_code = 404


class Conflict(QuizAppError):
    status_code = 409


class RateLimited(QuizAppError):
    status_code = 429


class PersistenceFailure(QuizAppError):
    status_code = 500


class ExtractionError(QuizAppError):
    status_code = 502
