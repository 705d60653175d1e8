"""
Settings persistence for CoupleSwipe.
"""

from .settings_store import (
    NAMES_KEY,
    PREFERENCES_KEY,
    TOKEN_KEY,
    JsonFileStore,
    MemoryStore,
    SettingsStore,
    StoredSettings,
)

__all__ = [
    'NAMES_KEY',
    'PREFERENCES_KEY',
    'TOKEN_KEY',
    'JsonFileStore',
    'MemoryStore',
    'SettingsStore',
    'StoredSettings',
]
