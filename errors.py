class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(AppError):
    """Missing or malformed request fields."""

    status_code = 400


class UploadError(InvalidInput):
    """Rejected image upload (wrong content type or too large)."""


class NotFound(AppError):
    status_code = 404


class StoreError(AppError):
    """Persistence or image host failure."""

    status_code = 500
