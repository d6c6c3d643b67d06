"""
Тесты фонового обновления сущностей
"""

import asyncio

import pytest
from sqlalchemy import select

from hassh.models.entity import Entity
from hassh.tasks.entity_refresher import EntityRefresher
from tests.factories import EntityFactory


@pytest.mark.asyncio
class TestEntityRefresher:
    """Тесты EntityRefresher"""

    async def test_refresh_once(self, database, db_session, test_user, ha_factory, hub):
        """Один цикл обновляет состояние в базе"""
        db_session.add(
            EntityFactory(entity_id="switch.fan", state="unknown", user_id=test_user.id)
        )
        await db_session.commit()

        refresher = EntityRefresher(database, ha_factory, interval=60)
        result = await refresher.refresh_once()

        assert result == (1, 0)
        assert refresher.cycles == 1

        stored = await db_session.execute(
            select(Entity)
            .where(Entity.entity_id == "switch.fan")
            .execution_options(populate_existing=True)
        )
        assert stored.scalar_one().state == "on"

    async def test_start_and_stop(self, database, ha_factory):
        """Фоновая задача запускается и корректно останавливается"""
        refresher = EntityRefresher(database, ha_factory, interval=0.01)

        refresher.start()
        assert refresher.running is True

        for _ in range(200):
            if refresher.cycles:
                break
            await asyncio.sleep(0.01)

        await refresher.stop()

        assert refresher.cycles >= 1
        assert refresher.running is False

    async def test_loop_survives_errors(self, database, ha_factory, monkeypatch):
        """Ошибка цикла не останавливает обновление"""
        refresher = EntityRefresher(database, ha_factory, interval=0.01)
        calls = 0

        async def failing_refresh():
            nonlocal calls
            calls += 1
            raise RuntimeError("boom")

        monkeypatch.setattr(refresher, "refresh_once", failing_refresh)

        refresher.start()
        for _ in range(200):
            if calls >= 2:
                break
            await asyncio.sleep(0.01)
        await refresher.stop()

        assert calls >= 2

    async def test_stop_without_start(self, database, ha_factory):
        """Остановка незапущенной задачи"""
        refresher = EntityRefresher(database, ha_factory, interval=1)
        await refresher.stop()
        assert refresher.running is False
