"""
Журнал обращений к публичным ссылкам.

Каждое решение по ссылке (выдача, отказ, вызов сервиса, деактивация)
пишется отдельной записью со структурированным контекстом в extra.
"""

import logging
from uuid import UUID


class ShareAccessLogger:
    """Специализированный логгер для публичных ссылок."""

    def __init__(self) -> None:
        # Дочерний логгер "hassh": обработчик настраивается в setup_logging
        self.logger = logging.getLogger("hassh.share_access")

    def log_link_created(
        self, link_id: UUID, user_id: UUID, link_type: str, entity_count: int
    ) -> None:
        """Логирование создания ссылки."""
        context = {
            "link_id": str(link_id),
            "user_id": str(user_id),
            "link_type": link_type,
            "entity_count": entity_count,
        }
        self.logger.info(
            f"Создана ссылка {link_type} на {entity_count} сущностей", extra=context
        )

    def log_access_granted(
        self, link_id: UUID, access_count: int, resolved: int, requested: int
    ) -> None:
        """Логирование успешного обращения по ссылке."""
        context = {
            "link_id": str(link_id),
            "access_count": access_count,
            "resolved": resolved,
            "requested": requested,
        }
        self.logger.info(
            f"Доступ по ссылке {link_id}: получено {resolved} из {requested} сущностей",
            extra=context,
        )

    def log_access_denied(self, token: str, reason: str) -> None:
        """Логирование отказа в доступе."""
        context = {"token_prefix": token[:8], "reason": reason}
        self.logger.warning(
            f"Отказ в доступе по ссылке {token[:8]}...: {reason}", extra=context
        )

    def log_link_deactivated(self, link_id: UUID, reason: str) -> None:
        """Логирование необратимой деактивации ссылки."""
        context = {"link_id": str(link_id), "reason": reason}
        self.logger.info(f"Ссылка {link_id} деактивирована: {reason}", extra=context)

    def log_trigger(
        self, link_id: UUID, entity_id: str, service: str, success: bool
    ) -> None:
        """Логирование вызова сервиса через ссылку."""
        context = {
            "link_id": str(link_id),
            "entity_id": entity_id,
            "service": service,
            "success": success,
        }
        if success:
            self.logger.info(
                f"Вызван сервис {service} для {entity_id} по ссылке", extra=context
            )
        else:
            self.logger.error(
                f"Ошибка вызова сервиса {service} для {entity_id} по ссылке",
                extra=context,
            )

    def log_race_retry(self, link_id: UUID, attempt: int) -> None:
        """Логирование повторной проверки после проигранной гонки."""
        context = {"link_id": str(link_id), "attempt": attempt}
        self.logger.debug(
            f"Счетчик ссылки {link_id} изменен конкурентно, повторная проверка",
            extra=context,
        )


# Глобальный экземпляр логгера
share_access_logger = ShareAccessLogger()
