from typing import Optional


class AppError(Exception):
    """Base application error."""


class ValidationError(AppError):
    """Raised when CLI arguments or configuration are invalid."""


class HttpRequestError(AppError):
    """Raised when an HTTP request fails or exhausts its retries.

    Args:
        message: Error summary.
        url: Requested url.
        status_code: Last HTTP status code, None for network failures.
        body: Last response body text.
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        status_code: Optional[int] = None,
        body: str = ""
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body


class ApiResponseError(AppError):
    """Raised when the Storyblok API returns an invalid payload."""
