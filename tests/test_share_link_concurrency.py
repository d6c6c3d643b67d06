"""
Тесты конкурентного доступа к ссылкам с лимитом обращений
"""

import asyncio

import pytest

from hassh.exceptions import ShareLinkForbiddenError
from hassh.services.share_link_service import ShareLinkService
from tests.factories import ShareLinkFactory


async def _attempt(database, ha_factory, token: str) -> str:
    async with database.session_factory() as session:
        service = ShareLinkService(session, ha_factory)
        try:
            await service.resolve(token)
        except ShareLinkForbiddenError as exc:
            return exc.reason
        return "ok"


@pytest.mark.asyncio
class TestCounterConcurrency:
    """Счетчик не превышает лимит при параллельных обращениях"""

    async def test_parallel_resolves_respect_max_access(
        self, database, db_session, test_user, ha_factory
    ):
        link = ShareLinkFactory(counter=True, max_access=3, user_id=test_user.id)
        db_session.add(link)
        await db_session.commit()

        results = await asyncio.gather(
            *(_attempt(database, ha_factory, link.token) for _ in range(8))
        )

        assert results.count("ok") == 3
        assert set(results) <= {"ok", "exhausted", "inactive"}

        await db_session.refresh(link)
        assert link.access_count == 3
        assert link.is_active is False

    async def test_parallel_resolves_single_use(
        self, database, db_session, other_user, ha_factory
    ):
        link = ShareLinkFactory(counter=True, max_access=1, user_id=other_user.id)
        db_session.add(link)
        await db_session.commit()

        results = await asyncio.gather(
            *(_attempt(database, ha_factory, link.token) for _ in range(5))
        )

        assert results.count("ok") == 1
        await db_session.refresh(link)
        assert link.access_count == 1

    async def test_permanent_link_counts_every_access(
        self, database, db_session, other_user, ha_factory
    ):
        link = ShareLinkFactory(user_id=other_user.id)
        db_session.add(link)
        await db_session.commit()

        results = await asyncio.gather(
            *(_attempt(database, ha_factory, link.token) for _ in range(6))
        )

        assert results == ["ok"] * 6
        await db_session.refresh(link)
        assert link.access_count == 6
