"""
Property-based тесты с использованием Hypothesis
"""

from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError as PydanticValidationError

from hassh.core.json_value import JSONValue
from hassh.exceptions import ValidationError
from hassh.models.share_link import AccessMode, ShareLink, ShareLinkType
from hassh.schemas.share_link import ShareLinkCreate, check_link_policy
from hassh.validators import ENTITY_ID_PATTERN, HomeAssistantValidator

id_part = st.from_regex(r"\A[a-z0-9_]{1,20}\Z")
entity_ids = st.builds(lambda d, o: f"{d}.{o}", id_part, id_part)

json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=10),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=5), children, max_size=4),
    max_leaves=15,
)


def _link(link_type: ShareLinkType, **kwargs) -> ShareLink:
    values = {
        "token": "t" * 32,
        "entity_ids": ["light.kitchen"],
        "link_type": link_type,
        "access_mode": AccessMode.READONLY,
        "access_count": 0,
        "is_active": True,
    }
    values.update(kwargs)
    return ShareLink(**values)


class TestEntityIdValidation:
    """Property-based тесты идентификаторов сущностей"""

    @given(entity_ids)
    def test_valid_entity_id_splits(self, entity_id):
        domain, object_id = HomeAssistantValidator.split_entity_id(entity_id)
        assert f"{domain}.{object_id}" == entity_id

    @given(st.text(max_size=30))
    def test_arbitrary_text(self, text):
        """Произвольная строка либо соответствует шаблону, либо отклоняется"""
        if ENTITY_ID_PATTERN.fullmatch(text):
            domain, _ = HomeAssistantValidator.split_entity_id(text)
            assert domain == text.split(".")[0]
        else:
            with pytest.raises(ValidationError):
                HomeAssistantValidator.split_entity_id(text)

    @given(st.lists(entity_ids, min_size=1, max_size=10))
    def test_entity_ids_unique_and_ordered(self, ids):
        """Список без дублей в порядке первого вхождения"""
        result = HomeAssistantValidator.validate_entity_ids(ids)

        assert len(result) == len(set(result))
        assert set(result) == set(ids)
        assert result == sorted(set(ids), key=ids.index)


class TestLinkPolicy:
    """Property-based тесты политики ссылок"""

    @given(
        st.sampled_from(list(ShareLinkType)),
        st.none() | st.integers(min_value=1, max_value=1000),
        st.none() | st.datetimes(timezones=st.just(UTC)),
    )
    def test_policy_requires_matching_field(self, link_type, max_access, expires_at):
        error = check_link_policy(link_type, max_access, expires_at)

        if link_type == ShareLinkType.COUNTER:
            assert (error is None) == (max_access is not None)
            assert error is None or error[1] == "max_access"
        elif link_type == ShareLinkType.TIME:
            assert (error is None) == (expires_at is not None)
            assert error is None or error[1] == "expires_at"
        else:
            assert error is None

    @given(
        st.integers(min_value=1, max_value=50),
        st.integers(min_value=0, max_value=60),
    )
    def test_counter_exhaustion(self, max_access, access_count):
        """Ссылка исчерпана ровно тогда, когда счетчик достиг лимита"""
        link = _link(
            ShareLinkType.COUNTER, max_access=max_access, access_count=access_count
        )

        assert link.is_exhausted == (access_count >= max_access)
        assert link.is_accessible == (access_count < max_access)

    @given(st.integers(min_value=0, max_value=10_000))
    def test_permanent_never_exhausted(self, access_count):
        link = _link(ShareLinkType.PERMANENT, access_count=access_count)
        assert not link.is_exhausted
        assert not link.is_expired
        assert link.is_accessible

    @given(st.integers(min_value=-1000, max_value=1000).filter(lambda m: m != 0))
    def test_time_expiry(self, minutes):
        expires_at = datetime.now(UTC) + timedelta(minutes=minutes)
        link = _link(ShareLinkType.TIME, expires_at=expires_at)
        assert link.is_expired == (minutes < 0)

    @given(st.integers(max_value=0))
    def test_schema_rejects_non_positive_limit(self, max_access):
        with pytest.raises(PydanticValidationError):
            ShareLinkCreate(
                entity_ids=["light.kitchen"],
                link_type=ShareLinkType.COUNTER,
                max_access=max_access,
            )


class TestJSONValueProperties:
    """Property-based тесты JSONValue"""

    @given(json_values)
    def test_text_representation_is_stable(self, raw):
        value = JSONValue(raw)
        assert JSONValue.from_json(value.to_json()) == value

    @given(st.dictionaries(st.text(max_size=5), json_values, max_size=5))
    def test_str_accessor_returns_only_strings(self, raw):
        value = JSONValue(raw)
        for key in raw:
            result = value.get_str(key)
            assert result == (raw[key] if isinstance(raw[key], str) else None)
