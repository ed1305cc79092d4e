from fastapi import status


class QuizError(Exception):
    """Base for every error the quiz engine reports to a caller."""

    error_code = "quiz_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.error_code
        super().__init__(self.detail)


class SessionNotFound(QuizError):
    error_code = "session_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class AlreadyCompleted(QuizError):
    error_code = "quiz_already_completed"
    status_code = status.HTTP_409_CONFLICT


class InvalidChoice(QuizError):
    error_code = "invalid_choice"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidInput(QuizError):
    error_code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class StorageUnavailable(QuizError):
    error_code = "storage_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
