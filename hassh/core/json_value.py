"""
Непрозрачное JSON-значение для произвольных данных хаба

Атрибуты сущностей Home Assistant имеют произвольную структуру. Они
декодируются один раз на границе (ответ хаба или строка БД) и дальше
передаются как JSONValue с типизированными методами доступа.
"""

import copy
import json
from typing import Any

from sqlalchemy import JSON
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator


class JSONValue:
    """Обертка над JSON-совместимым значением"""

    __slots__ = ("_raw",)

    def __init__(self, raw: Any = None) -> None:
        if isinstance(raw, JSONValue):
            raw = raw.raw
        # Проверяем сериализуемость сразу, а не при сохранении
        json.dumps(raw)
        self._raw = copy.deepcopy(raw)

    @classmethod
    def from_json(cls, text: str | bytes | None) -> "JSONValue":
        """Декодировать JSON строку"""
        if text is None or text in ("", b""):
            return cls(None)
        return cls(json.loads(text))

    @property
    def raw(self) -> Any:
        """Копия исходного значения"""
        return copy.deepcopy(self._raw)

    @property
    def is_null(self) -> bool:
        return self._raw is None

    def to_json(self) -> str:
        """Сериализовать в JSON строку"""
        return json.dumps(self._raw, ensure_ascii=False, sort_keys=True)

    def as_dict(self) -> dict[str, Any]:
        """Значение как словарь (None трактуется как пустой словарь)"""
        if self._raw is None:
            return {}
        if not isinstance(self._raw, dict):
            raise TypeError(
                f"JSON значение не является объектом: {type(self._raw).__name__}"
            )
        return copy.deepcopy(self._raw)

    def as_list(self) -> list[Any]:
        """Значение как список (None трактуется как пустой список)"""
        if self._raw is None:
            return []
        if not isinstance(self._raw, list):
            raise TypeError(
                f"JSON значение не является массивом: {type(self._raw).__name__}"
            )
        return copy.deepcopy(self._raw)

    def get(self, key: str, default: Any = None) -> Any:
        """Получить значение по ключу объекта"""
        if not isinstance(self._raw, dict):
            return default
        return copy.deepcopy(self._raw.get(key, default))

    def get_str(self, key: str, default: str | None = None) -> str | None:
        value = self.get(key)
        return value if isinstance(value, str) else default

    def __contains__(self, key: object) -> bool:
        return isinstance(self._raw, dict) and key in self._raw

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JSONValue):
            return self._raw == other._raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.to_json())

    def __repr__(self) -> str:
        return f"JSONValue({self._raw!r})"


class JSONValueType(TypeDecorator):
    """Тип колонки SQLAlchemy для JSONValue"""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if isinstance(value, JSONValue):
            return value.raw
        return JSONValue(value).raw

    def process_result_value(self, value: Any, dialect: Dialect) -> JSONValue:
        return JSONValue(value)
