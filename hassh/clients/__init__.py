"""
Клиенты внешних сервисов
"""

from .home_assistant import (
    HomeAssistantClient,
    HomeAssistantClientFactory,
    get_ha_factory,
)

__all__ = ["HomeAssistantClient", "HomeAssistantClientFactory", "get_ha_factory"]
