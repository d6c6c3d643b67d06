"""
Кастомные исключения для приложения
"""

from typing import Any

from fastapi import HTTPException, status

from hassh.core.constants import HA_NOT_CONFIGURED_MESSAGE


class BaseAPIException(Exception):
    """Базовое исключение API"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def code(self) -> str | None:
        """Получение кода ошибки из details"""
        return self.details.get("code")


class ValidationError(BaseAPIException):
    """Ошибка валидации"""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            details=details,
        )


class NotFoundError(BaseAPIException):
    """Ресурс не найден"""

    def __init__(self, resource: str, identifier: str | None = None):
        message = f"{resource} не найден"
        if identifier:
            message += f" (ID: {identifier})"

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "identifier": identifier},
        )


class PermissionError(BaseAPIException):
    """Ошибка доступа"""

    def __init__(self, action: str, resource: str | None = None):
        message = f"Недостаточно прав для действия: {action}"
        if resource:
            message += f" над ресурсом: {resource}"

        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details={"action": action, "resource": resource},
        )


class AuthenticationError(BaseAPIException):
    """Ошибка аутентификации"""

    def __init__(self, message: str = "Ошибка аутентификации"):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


class ConflictError(BaseAPIException):
    """Конфликт данных"""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message, status_code=status.HTTP_409_CONFLICT, details=details
        )


class RateLimitError(BaseAPIException):
    """Превышен лимит запросов"""

    def __init__(self, limit: int, window: int):
        message = f"Превышен лимит запросов: {limit} за {window} секунд"
        super().__init__(
            message=message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details={"limit": limit, "window": window},
        )


class BusinessLogicError(BaseAPIException):
    """Ошибка бизнес-логики"""

    def __init__(self, message: str, code: str | None = None):
        details = {"code": code} if code else {}
        super().__init__(
            message=message, status_code=status.HTTP_400_BAD_REQUEST, details=details
        )


class ExternalServiceError(BaseAPIException):
    """Ошибка внешнего сервиса"""

    def __init__(self, service: str, message: str = "Ошибка внешнего сервиса"):
        super().__init__(
            message=f"{service}: {message}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"service": service},
        )


class DatabaseError(BaseAPIException):
    """Ошибка базы данных"""

    def __init__(self, message: str = "Ошибка базы данных"):
        super().__init__(
            message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


# Специфические исключения для доменной области


class HomeAssistantError(ExternalServiceError):
    """Home Assistant недоступен или вернул ошибку"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__("Home Assistant", message)
        if status_code is not None:
            self.details["upstream_status"] = status_code


class HomeAssistantNotConfiguredError(BusinessLogicError):
    """У пользователя не настроен Home Assistant"""

    def __init__(self, message: str = HA_NOT_CONFIGURED_MESSAGE):
        super().__init__(message, code="HA_NOT_CONFIGURED")


class ShareLinkNotFoundError(NotFoundError):
    """Публичная ссылка не найдена"""

    def __init__(self, identifier: str | None = None):
        super().__init__("Ссылка", identifier)


class ShareLinkForbiddenError(PermissionError):
    """Базовый отказ в доступе по публичной ссылке"""

    reason = "forbidden"
    default_message = "Доступ по ссылке запрещен"

    def __init__(self, message: str | None = None):
        super().__init__("доступ", "ссылка")
        self.message = message or self.default_message
        self.args = (self.message,)
        self.details["reason"] = self.reason


class ShareLinkInactiveError(ShareLinkForbiddenError):
    """Ссылка деактивирована"""

    reason = "inactive"
    default_message = "Ссылка больше не активна"


class ShareLinkExhaustedError(ShareLinkForbiddenError):
    """Исчерпан лимит обращений"""

    reason = "exhausted"
    default_message = "Достигнуто максимальное число обращений по ссылке"


class ShareLinkExpiredError(ShareLinkForbiddenError):
    """Истек срок действия ссылки"""

    reason = "expired"
    default_message = "Срок действия ссылки истек"


class ShareLinkReadOnlyError(ShareLinkForbiddenError):
    """Ссылка только для чтения"""

    reason = "readonly"
    default_message = "Ссылка доступна только для чтения"


class EntityNotInShareError(ShareLinkForbiddenError):
    """Сущность не входит в ссылку"""

    reason = "entity_not_shared"
    default_message = "Сущность не входит в эту ссылку"


class ShareLinkPasswordError(AuthenticationError):
    """Неверный пароль ссылки"""

    def __init__(self, message: str = "Неверный пароль ссылки"):
        super().__init__(message)
        self.details["reason"] = "password"


class EntityNotFoundError(NotFoundError):
    """Сущность не найдена"""

    def __init__(self, entity_id: str):
        super().__init__("Сущность", entity_id)


class EntityAlreadyTrackedError(ConflictError):
    """Сущность уже отслеживается"""

    def __init__(self, entity_id: str):
        super().__init__(f"Сущность '{entity_id}' уже отслеживается", "entity_id")


class UserNotFoundError(NotFoundError):
    """Пользователь не найден"""

    def __init__(self, user_id: str):
        super().__init__("Пользователь", user_id)


class UserAlreadyExistsError(ConflictError):
    """Пользователь уже существует"""

    def __init__(self, field: str, value: str):
        message = f"Пользователь с {field} '{value}' уже существует"
        super().__init__(message, field)


class LastAdminError(BusinessLogicError):
    """Попытка удалить или понизить последнего администратора"""

    def __init__(self, message: str = "Нельзя лишить системы последнего администратора"):
        super().__init__(message, code="LAST_ADMIN")


class RegistrationClosedError(BaseAPIException):
    """Регистрация закрыта: администратор уже существует"""

    def __init__(self) -> None:
        super().__init__(
            message="Регистрация отключена. Обратитесь к администратору за учетной записью.",
            status_code=status.HTTP_403_FORBIDDEN,
        )


# Функции для преобразования исключений в HTTP ответы
def exception_to_http_exception(exc: BaseAPIException) -> HTTPException:
    """Преобразование кастомного исключения в HTTPException"""
    return HTTPException(
        status_code=exc.status_code,
        detail={
            "message": exc.message,
            "details": exc.details,
            "type": exc.__class__.__name__,
        },
    )


def handle_database_error(exc: Exception) -> BaseAPIException:
    """Обработка ошибок базы данных"""
    error_message = str(exc).lower()

    if "unique constraint" in error_message or "duplicate key" in error_message:
        return ConflictError("Запись уже существует")

    if "foreign key constraint" in error_message:
        return ValidationError("Связанная запись не найдена")

    if "not null constraint" in error_message:
        return ValidationError("Обязательное поле не указано")

    return DatabaseError(f"Ошибка базы данных: {exc}")
