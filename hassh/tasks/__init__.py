"""
Фоновые задачи
"""

from .entity_refresher import EntityRefresher

__all__ = ["EntityRefresher"]
