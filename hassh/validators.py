"""
Валидаторы бизнес-правил
"""

import re
from urllib.parse import urlparse

from hassh.exceptions import ValidationError

ENTITY_ID_PATTERN = re.compile(r"^[a-z0-9_]+\.[a-z0-9_]+$")
SERVICE_NAME_PATTERN = re.compile(r"^[a-z0-9_]+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]{3,50}$")

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 100


class BaseValidator:
    """Базовый класс валидаторов"""

    @staticmethod
    def validate_username(username: str) -> str:
        """Валидация username"""
        username = username.strip()
        if not USERNAME_PATTERN.fullmatch(username):
            raise ValidationError(
                "Username должен содержать только буквы, цифры, _, . и - (3-50 символов)",
                "username",
            )
        return username

    @staticmethod
    def validate_password(password: str, field: str = "password") -> str:
        """Валидация пароля"""
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Пароль должен содержать минимум {MIN_PASSWORD_LENGTH} символов",
                field,
            )

        if len(password) > MAX_PASSWORD_LENGTH:
            raise ValidationError(
                f"Пароль слишком длинный (максимум {MAX_PASSWORD_LENGTH} символов)",
                field,
            )

        return password


class HomeAssistantValidator(BaseValidator):
    """Валидаторы идентификаторов и адресов Home Assistant"""

    @staticmethod
    def split_entity_id(entity_id: str) -> tuple[str, str]:
        """
        Разобрать идентификатор сущности на домен и object_id

        Args:
            entity_id: Идентификатор вида "light.kitchen"

        Returns:
            tuple[str, str]: (домен, object_id)

        Raises:
            ValidationError: Если идентификатор не имеет вид domain.object_id
        """
        if not ENTITY_ID_PATTERN.fullmatch(entity_id or ""):
            raise ValidationError(
                f"Некорректный идентификатор сущности: '{entity_id}'", "entity_id"
            )
        domain, object_id = entity_id.split(".", 1)
        return domain, object_id

    @classmethod
    def validate_entity_id(cls, entity_id: str) -> str:
        """Валидация идентификатора сущности"""
        entity_id = entity_id.strip()
        cls.split_entity_id(entity_id)
        return entity_id

    @classmethod
    def validate_entity_ids(cls, entity_ids: list[str]) -> list[str]:
        """Валидация списка сущностей: непустой, без дублей, порядок сохраняется"""
        unique: list[str] = []
        for entity_id in entity_ids:
            entity_id = cls.validate_entity_id(entity_id)
            if entity_id not in unique:
                unique.append(entity_id)

        if not unique:
            raise ValidationError("Нужно выбрать хотя бы одну сущность", "entity_ids")

        return unique

    @staticmethod
    def validate_service_name(service: str) -> str:
        """Валидация имени сервиса (turn_on, toggle...)"""
        service = service.strip()
        if not SERVICE_NAME_PATTERN.fullmatch(service):
            raise ValidationError(f"Некорректное имя сервиса: '{service}'", "service")
        return service

    @staticmethod
    def validate_ha_url(url: str) -> str:
        """Валидация адреса Home Assistant"""
        url = url.strip().rstrip("/")
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError(
                "Адрес Home Assistant должен начинаться с http:// или https://",
                "ha_url",
            )
        return url
