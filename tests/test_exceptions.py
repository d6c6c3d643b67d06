"""
Тесты для исключений приложения
"""

from fastapi import HTTPException, status

from hassh.exceptions import (
    AuthenticationError,
    BaseAPIException,
    BusinessLogicError,
    ConflictError,
    DatabaseError,
    EntityAlreadyTrackedError,
    EntityNotFoundError,
    EntityNotInShareError,
    ExternalServiceError,
    HomeAssistantError,
    HomeAssistantNotConfiguredError,
    LastAdminError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    RegistrationClosedError,
    ShareLinkExhaustedError,
    ShareLinkExpiredError,
    ShareLinkForbiddenError,
    ShareLinkInactiveError,
    ShareLinkNotFoundError,
    ShareLinkPasswordError,
    ShareLinkReadOnlyError,
    UserAlreadyExistsError,
    ValidationError,
    exception_to_http_exception,
    handle_database_error,
)


class TestBaseAPIException:
    """Тесты базового исключения API"""

    def test_base_exception_creation(self):
        """Создание базового исключения"""
        exc = BaseAPIException("Test message", 400, {"key": "value"})
        assert exc.message == "Test message"
        assert exc.status_code == 400
        assert exc.details == {"key": "value"}

    def test_base_exception_defaults(self):
        """Значения по умолчанию"""
        exc = BaseAPIException("Test message")
        assert exc.status_code == status.HTTP_400_BAD_REQUEST
        assert exc.details == {}
        assert exc.code is None

    def test_base_exception_str_representation(self):
        assert str(BaseAPIException("Test message")) == "Test message"


class TestGenericErrors:
    """Тесты общих исключений"""

    def test_validation_error(self):
        exc = ValidationError("Invalid data")
        assert exc.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
        assert exc.details == {}

        exc = ValidationError("Invalid entity", "entity_id")
        assert exc.details == {"field": "entity_id"}

    def test_not_found(self):
        """Ресурс не найден с идентификатором и без"""
        exc = NotFoundError("Ссылка")
        assert exc.message == "Ссылка не найден"
        assert exc.status_code == status.HTTP_404_NOT_FOUND

        exc = NotFoundError("Ссылка", "abc")
        assert exc.message == "Ссылка не найден (ID: abc)"
        assert exc.details == {"resource": "Ссылка", "identifier": "abc"}

    def test_permission_error(self):
        exc = PermissionError("удаление", "ссылка")
        assert "удаление" in exc.message
        assert "ссылка" in exc.message
        assert exc.status_code == status.HTTP_403_FORBIDDEN

    def test_authentication_error(self):
        exc = AuthenticationError()
        assert exc.message == "Ошибка аутентификации"
        assert exc.status_code == status.HTTP_401_UNAUTHORIZED

    def test_conflict_error(self):
        exc = ConflictError("Уже есть", "username")
        assert exc.status_code == status.HTTP_409_CONFLICT
        assert exc.details == {"field": "username"}

    def test_rate_limit_error(self):
        exc = RateLimitError(10, 60)
        assert exc.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert exc.details == {"limit": 10, "window": 60}

    def test_business_logic_error_code(self):
        exc = BusinessLogicError("Нельзя", "SOME_CODE")
        assert exc.code == "SOME_CODE"
        assert BusinessLogicError("Нельзя").details == {}

    def test_external_service_error(self):
        exc = ExternalServiceError("Hub", "timeout")
        assert exc.message == "Hub: timeout"
        assert exc.status_code == status.HTTP_502_BAD_GATEWAY

    def test_database_error(self):
        assert DatabaseError().status_code == status.HTTP_500_INTERNAL_SERVER_ERROR


class TestDomainErrors:
    """Тесты доменных исключений"""

    def test_home_assistant_error(self):
        """Код ответа хаба попадает в details"""
        exc = HomeAssistantError("Сущность не найдена", status_code=404)
        assert isinstance(exc, ExternalServiceError)
        assert exc.status_code == status.HTTP_502_BAD_GATEWAY
        assert exc.details == {"service": "Home Assistant", "upstream_status": 404}

        assert "upstream_status" not in HomeAssistantError("down").details

    def test_home_assistant_not_configured(self):
        exc = HomeAssistantNotConfiguredError()
        assert exc.status_code == status.HTTP_400_BAD_REQUEST
        assert exc.code == "HA_NOT_CONFIGURED"

    def test_share_link_denials_carry_reason(self):
        """Каждый отказ по ссылке имеет свою причину"""
        reasons = {
            ShareLinkForbiddenError: "forbidden",
            ShareLinkInactiveError: "inactive",
            ShareLinkExhaustedError: "exhausted",
            ShareLinkExpiredError: "expired",
            ShareLinkReadOnlyError: "readonly",
            EntityNotInShareError: "entity_not_shared",
        }
        for exc_class, reason in reasons.items():
            exc = exc_class()
            assert exc.status_code == status.HTTP_403_FORBIDDEN
            assert exc.details["reason"] == reason
            assert exc.message == exc_class.default_message
            assert str(exc) == exc.message

    def test_share_link_denial_custom_message(self):
        exc = ShareLinkExpiredError("Истекла вчера")
        assert exc.message == "Истекла вчера"
        assert exc.details["reason"] == "expired"

    def test_share_link_password_error(self):
        exc = ShareLinkPasswordError()
        assert exc.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc.details == {"reason": "password"}

    def test_not_found_variants(self):
        assert ShareLinkNotFoundError("tok").details["identifier"] == "tok"
        assert EntityNotFoundError("light.x").message == (
            "Сущность не найден (ID: light.x)"
        )

    def test_conflict_variants(self):
        exc = EntityAlreadyTrackedError("light.kitchen")
        assert "light.kitchen" in exc.message
        assert exc.details == {"field": "entity_id"}

        exc = UserAlreadyExistsError("username", "alice")
        assert exc.message == "Пользователь с username 'alice' уже существует"

    def test_last_admin_and_registration(self):
        assert LastAdminError().code == "LAST_ADMIN"
        exc = RegistrationClosedError()
        assert exc.status_code == status.HTTP_403_FORBIDDEN
        assert RegistrationClosedError.__bases__ == (BaseAPIException,)
        assert exception_to_http_exception(exc).detail == {
            "message": "Регистрация отключена. Обратитесь к администратору за учетной записью.",
            "details": {},
            "type": "RegistrationClosedError",
        }


class TestExceptionConversion:
    """Тесты преобразования исключений"""

    def test_exception_to_http_exception(self):
        exc = ShareLinkExhaustedError()
        http_exc = exception_to_http_exception(exc)

        assert isinstance(http_exc, HTTPException)
        assert http_exc.status_code == status.HTTP_403_FORBIDDEN
        assert http_exc.detail == {
            "message": exc.message,
            "details": {
                "action": "доступ",
                "resource": "ссылка",
                "reason": "exhausted",
            },
            "type": "ShareLinkExhaustedError",
        }

    def test_handle_unique_violation(self):
        exc = handle_database_error(
            Exception("UNIQUE constraint failed: entities.entity_id")
        )
        assert isinstance(exc, ConflictError)

    def test_handle_foreign_key_violation(self):
        exc = handle_database_error(Exception("FOREIGN KEY constraint failed"))
        assert isinstance(exc, ValidationError)

    def test_handle_not_null_violation(self):
        exc = handle_database_error(Exception("NOT NULL constraint failed: users.id"))
        assert isinstance(exc, ValidationError)
        assert exc.message == "Обязательное поле не указано"

    def test_handle_unknown_database_error(self):
        exc = handle_database_error(Exception("disk I/O error"))
        assert isinstance(exc, DatabaseError)
        assert "disk I/O error" in exc.message
