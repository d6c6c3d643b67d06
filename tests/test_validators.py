"""
Тесты валидаторов
"""

import pytest

from hassh.exceptions import ValidationError
from hassh.validators import BaseValidator, HomeAssistantValidator


class TestBaseValidator:
    """Тесты базовых валидаторов"""

    def test_valid_usernames(self):
        for username in ("alice", "user_1", "john.doe", "a-b-c"):
            assert BaseValidator.validate_username(username) == username

    def test_username_is_stripped(self):
        assert BaseValidator.validate_username("  alice ") == "alice"

    def test_invalid_usernames(self):
        for username in ("ab", "a" * 51, "имя", "user name", "user@host"):
            with pytest.raises(ValidationError) as exc_info:
                BaseValidator.validate_username(username)
            assert exc_info.value.details == {"field": "username"}

    def test_password_length(self):
        assert BaseValidator.validate_password("12345678") == "12345678"

        with pytest.raises(ValidationError, match="минимум 8"):
            BaseValidator.validate_password("short")

        with pytest.raises(ValidationError, match="слишком длинный"):
            BaseValidator.validate_password("x" * 101)

    def test_password_error_field(self):
        with pytest.raises(ValidationError) as exc_info:
            BaseValidator.validate_password("short", field="new_password")
        assert exc_info.value.details == {"field": "new_password"}


class TestHomeAssistantValidator:
    """Тесты валидаторов Home Assistant"""

    def test_split_entity_id(self):
        assert HomeAssistantValidator.split_entity_id("light.kitchen") == (
            "light",
            "kitchen",
        )
        assert HomeAssistantValidator.split_entity_id("sensor.temp_1") == (
            "sensor",
            "temp_1",
        )

    @pytest.mark.parametrize(
        "entity_id",
        ["", "light", "light.", ".kitchen", "Light.Kitchen", "light.kit.chen", "a b.c"],
    )
    def test_split_invalid_entity_id(self, entity_id):
        with pytest.raises(ValidationError) as exc_info:
            HomeAssistantValidator.split_entity_id(entity_id)
        assert exc_info.value.details == {"field": "entity_id"}

    def test_validate_entity_id_strips(self):
        assert HomeAssistantValidator.validate_entity_id(" switch.fan ") == "switch.fan"

    def test_validate_entity_ids_deduplicates(self):
        """Дубли удаляются, порядок первого вхождения сохраняется"""
        result = HomeAssistantValidator.validate_entity_ids(
            ["switch.fan", "light.kitchen", "switch.fan", " light.kitchen"]
        )
        assert result == ["switch.fan", "light.kitchen"]

    def test_validate_entity_ids_empty(self):
        with pytest.raises(ValidationError) as exc_info:
            HomeAssistantValidator.validate_entity_ids([])
        assert exc_info.value.details == {"field": "entity_ids"}

    def test_validate_entity_ids_invalid_item(self):
        with pytest.raises(ValidationError):
            HomeAssistantValidator.validate_entity_ids(["light.kitchen", "bad"])

    def test_validate_service_name(self):
        assert HomeAssistantValidator.validate_service_name("turn_on") == "turn_on"

        for service in ("", "turn on", "Turn_On", "light.turn_on"):
            with pytest.raises(ValidationError):
                HomeAssistantValidator.validate_service_name(service)

    def test_validate_ha_url(self):
        assert (
            HomeAssistantValidator.validate_ha_url(" https://ha.local:8123/ ")
            == "https://ha.local:8123"
        )
        assert (
            HomeAssistantValidator.validate_ha_url("http://192.168.1.10:8123")
            == "http://192.168.1.10:8123"
        )

    @pytest.mark.parametrize("url", ["ha.local", "ftp://ha.local", "http://", ""])
    def test_validate_invalid_ha_url(self, url):
        with pytest.raises(ValidationError) as exc_info:
            HomeAssistantValidator.validate_ha_url(url)
        assert exc_info.value.details == {"field": "ha_url"}
