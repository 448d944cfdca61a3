"""
Archive registry.

Archive flags live in an external key-value store keyed by order id or
receipt batch id. The engine only reads them through an explicitly injected
registry; the registry is re-read on refresh(), never implicitly.
"""
import json
import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


class ArchiveRegistry:
    """Read-only view of archived keys. Keys are compared case-insensitively."""

    def __init__(self, keys: Iterable[str] = ()):
        self._keys: frozenset[str] = _normalise_keys(keys)

    @property
    def keys(self) -> frozenset[str]:
        return self._keys

    def is_archived(self, key: str | None) -> bool:
        return bool(key) and key.strip().upper() in self._keys

    def refresh(self) -> None:
        """Re-read the backing store. A static registry has nothing to re-read."""

    def __len__(self) -> int:
        return len(self._keys)


class StaticArchiveRegistry(ArchiveRegistry):
    """Fixed set of archived keys, e.g. for tests or one-off evaluations."""


class JsonArchiveRegistry(ArchiveRegistry):
    """
    Registry backed by a JSON file.

    Accepted formats:
      ["PO-1", "PO-2"]
      {"archived": ["PO-1", "PO-2"]}
    A missing file means nothing is archived. An unreadable file is logged
    and the previously loaded keys are kept.
    """

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self.refresh()

    def refresh(self) -> None:
        if not self.path.exists():
            logger.info("Archive file not found: %s, nothing archived", self.path)
            self._keys = frozenset()
            return
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                data = data.get("archived", [])
            if not isinstance(data, list):
                raise ValueError("expected a list of archived keys")
            self._keys = _normalise_keys(str(k) for k in data)
            logger.info("Loaded %d archived keys from %s", len(self._keys), self.path.name)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load archive file %s: %s", self.path, exc)


def _normalise_keys(keys: Iterable[str]) -> frozenset[str]:
    return frozenset(k.strip().upper() for k in keys if k and k.strip())
