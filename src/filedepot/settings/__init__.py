"""
Runtime settings persisted as JSON.
"""

from .models import GlobalSettings
from .store import SettingsStore

__all__ = [
    "GlobalSettings",
    "SettingsStore",
]
