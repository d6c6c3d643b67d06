"""
Фоновое обновление отслеживаемых сущностей
"""

import asyncio
import logging

from hassh.clients.home_assistant import HomeAssistantClientFactory
from hassh.core.database import Database
from hassh.services.entity_service import EntityService

logger = logging.getLogger(__name__)


class EntityRefresher:
    """Периодически обновляет состояния сущностей всех пользователей"""

    def __init__(
        self,
        database: Database,
        ha_factory: HomeAssistantClientFactory,
        interval: float,
    ):
        self.database = database
        self.ha_factory = ha_factory
        self.interval = interval
        self.cycles = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Запустить цикл обновления в фоне"""
        if self.running:
            return
        logger.info(f"Запуск обновления сущностей каждые {self.interval} секунд")
        self._task = asyncio.create_task(self.run(), name="entity-refresher")

    async def stop(self) -> None:
        """Остановить цикл и дождаться его завершения"""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Обновление сущностей остановлено")

    async def run(self) -> None:
        """Цикл обновления; ошибка цикла не останавливает следующие"""
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.refresh_once()
            except Exception as e:
                logger.error(f"Ошибка обновления сущностей: {e}")

    async def refresh_once(self) -> tuple[int, int]:
        """
        Один цикл обновления

        Returns:
            Tuple[int, int]: (обновлено, не удалось получить)
        """
        async with self.database.session() as session:
            service = EntityService(session, self.ha_factory)
            refreshed, failed = await service.refresh_all_entities()

        self.cycles += 1
        logger.debug(
            f"Цикл обновления {self.cycles}: обновлено {refreshed}, ошибок {failed}"
        )
        return refreshed, failed
