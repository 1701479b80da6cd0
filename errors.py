"""
Error taxonomy

Every failure a handler wants to surface to the client is raised as one of
these. The global handlers in main.py turn them into
{"success": false, "message": ...} with the matching HTTP status.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = 400


class ValidationError(BadRequestError):
    pass


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409
