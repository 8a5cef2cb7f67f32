"""CodeMentor client exceptions."""


class CodeMentorError(Exception):
    """Base exception for the CodeMentor client."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(CodeMentorError):
    """The API could not be reached after all retries."""

    def __init__(self, message: str = "Failed to connect to CodeMentor API"):
        super().__init__(message)


class NotFoundError(CodeMentorError):
    """Resource not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class AuthenticationError(CodeMentorError):
    """Missing, invalid or expired token."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class OfflineCacheMissError(CodeMentorError):
    """Offline and nothing cached for the requested key, fresh or stale."""

    def __init__(self, key: str):
        super().__init__(f"No network connection and no cached data available for {key}")
        self.key = key
