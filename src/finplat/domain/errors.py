class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class ReferentialIntegrityError(AppError):
    pass


class AuthorizationError(AppError):
    pass


class SyncUnavailableError(AppError):
    pass
