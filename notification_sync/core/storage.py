from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from loguru import logger


class LocalStorage:
    """Key/value store persisted as a JSON object, mirroring browser ``localStorage``."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            content = self._path.read_text(encoding='utf-8')
        except OSError as exc:
            logger.warning(f"Storage file {self._path} is unreadable: {exc}")
            return {}
        if not content.strip():
            return {}
        try:
            payload = json.loads(content)
        except json.JSONDecodeError:
            logger.warning(f"Storage file {self._path} is not valid JSON, treating as empty")
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): str(value) for key, value in payload.items() if value is not None}

    def _write(self, items: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding='utf-8')

    def get_item(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if value else None

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if key in items:
            items.pop(key)
            self._write(items)

    def clear(self) -> None:
        if self._path.exists():
            self._write({})
