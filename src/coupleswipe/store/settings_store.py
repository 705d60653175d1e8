"""
Persisted settings: display names, discovery preferences and the API credential.

Each value is a JSON blob under a fixed key, the way a browser keeps them in
local storage. Missing or unreadable blobs fall back to documented defaults;
the store never refuses to load.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, Field

from ..errors import StoreError
from ..logging import get_logger
from ..models.preferences import DisplayNames, Preferences

logger = get_logger(__name__)

NAMES_KEY = 'cs_names'
PREFERENCES_KEY = 'cs_prefs_v2'
TOKEN_KEY = 'tmdb_v4_token'

KNOWN_KEYS = (NAMES_KEY, PREFERENCES_KEY, TOKEN_KEY)

M = TypeVar('M', bound=BaseModel)


class StoredSettings(BaseModel):
    """Everything persisted between sessions."""

    names: DisplayNames = Field(default_factory=DisplayNames)
    preferences: Preferences = Field(default_factory=Preferences)
    api_token: str = ''


class SettingsStore(Protocol):
    """Configuration store injected into sessions."""

    def load(self) -> StoredSettings: ...

    def save(
        self,
        *,
        names: DisplayNames | None = None,
        preferences: Preferences | None = None,
        api_token: str | None = None,
    ) -> None: ...

    def clear(self, key: str) -> None: ...


class _BlobStore(ABC):
    """Shared load/save logic over a flat key -> JSON string mapping."""

    @abstractmethod
    def _read_all(self) -> dict[str, str]: ...

    @abstractmethod
    def _write_all(self, blobs: dict[str, str]) -> None: ...

    def _decode(self, blobs: dict[str, str], key: str, model: type[M]) -> M:
        raw = blobs.get(key)
        if raw is None:
            return model()
        try:
            return model.model_validate_json(raw)
        except ValueError as e:
            logger.warning('store.invalid_blob', key=key, error=str(e))
            return model()

    def load(self) -> StoredSettings:
        blobs = self._read_all()

        token = ''
        raw_token = blobs.get(TOKEN_KEY)
        if raw_token is not None:
            try:
                decoded = json.loads(raw_token)
                token = decoded if isinstance(decoded, str) else ''
            except ValueError:
                logger.warning('store.invalid_blob', key=TOKEN_KEY)

        return StoredSettings(
            names=self._decode(blobs, NAMES_KEY, DisplayNames),
            preferences=self._decode(blobs, PREFERENCES_KEY, Preferences),
            api_token=token,
        )

    def save(
        self,
        *,
        names: DisplayNames | None = None,
        preferences: Preferences | None = None,
        api_token: str | None = None,
    ) -> None:
        """Write only the values given; other keys are left untouched."""
        blobs = self._read_all()
        if names is not None:
            blobs[NAMES_KEY] = names.model_dump_json()
        if preferences is not None:
            blobs[PREFERENCES_KEY] = preferences.model_dump_json()
        if api_token is not None:
            blobs[TOKEN_KEY] = json.dumps(api_token)
        self._write_all(blobs)

    def clear(self, key: str) -> None:
        if key not in KNOWN_KEYS:
            raise KeyError(key)
        blobs = self._read_all()
        if blobs.pop(key, None) is not None:
            self._write_all(blobs)


class MemoryStore(_BlobStore):
    """In-process store; nothing survives the process."""

    def __init__(self, blobs: dict[str, str] | None = None):
        self._blobs: dict[str, str] = dict(blobs or {})

    def _read_all(self) -> dict[str, str]:
        return dict(self._blobs)

    def _write_all(self, blobs: dict[str, str]) -> None:
        self._blobs = dict(blobs)


class JsonFileStore(_BlobStore):
    """All keys in a single JSON document on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data: Any = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning('store.unreadable', path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning('store.unreadable', path=str(self.path), error='not an object')
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, blobs: dict[str, str]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(blobs, indent=2), encoding='utf-8')
            tmp.replace(self.path)
        except OSError as e:
            raise StoreError(
                f"Could not write settings: {e}", context={'path': str(self.path)}
            ) from e
