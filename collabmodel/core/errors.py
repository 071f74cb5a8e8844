from typing import Optional


class ServiceError(Exception):
    """Базовая ошибка сервисного слоя, отображается в HTTP ответ"""

    status_code: int = 400
    error_code: str = "invalid_argument"

    def __init__(self, message: str, *, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class ValidationError(ServiceError):
    status_code = 400
    error_code = "invalid_argument"


class AuthenticationError(ServiceError):
    """Отсутствующий, неверный или просроченный токен, неверные учетные данные"""
    status_code = 401
    error_code = "unauthenticated"


class PermissionDeniedError(ServiceError):
    """Недостаточная роль или пользователь не владелец проекта"""
    status_code = 403
    error_code = "permission_denied"


class NotFoundError(ServiceError):
    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    """Нарушение уникальности (пользователь, проект)"""
    status_code = 409
    error_code = "already_exists"


class LockConflictError(ServiceError):
    """Проект сейчас редактируется другой сессией"""
    status_code = 409
    error_code = "failed_precondition"


class ServerError(ServiceError):
    status_code = 500
    error_code = "internal"


class ConfigurationError(ServerError):
    error_code = "configuration"


class QueryEngineError(ServerError):
    """Внешний движок запросов недоступен или вернул ошибку"""
    status_code = 502
    error_code = "unavailable"


__all__ = [
    "ServiceError",
    "ValidationError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "LockConflictError",
    "ServerError",
    "ConfigurationError",
    "QueryEngineError",
]
