"""Durable storage adapters for garden records.

Three logical keys are persisted: the garden collection, the current-garden
pointer and one image blob per garden. Adapters speak plain dictionaries in
the durable record shape; conversion to entities happens in the store.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from loguru import logger

from src.core.errors import StorageFailure


GARDENS_FILE_NAME = "gardens.json"
CURRENT_GARDEN_FILE_NAME = "current_garden.json"
IMAGE_DIR_NAME = "images"


class GardenStorage(ABC):
    """Adapter interface used by ``GardenStore``.

    Implementations raise ``StorageFailure`` for any read or write problem
    and perform no retries.
    """

    @abstractmethod
    def read_gardens(self) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def write_gardens(self, records: list[dict[str, Any]]) -> None:
        raise NotImplementedError

    @abstractmethod
    def read_current_garden_id(self) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def write_current_garden_id(self, garden_id: str | None) -> None:
        raise NotImplementedError

    @abstractmethod
    def read_image(self, garden_id: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def write_image(self, garden_id: str, image_ref: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_image(self, garden_id: str) -> None:
        raise NotImplementedError


class InMemoryStorage(GardenStorage):
    """Dict-backed adapter; records are deep-copied in and out."""

    def __init__(self) -> None:
        self._gardens: list[dict[str, Any]] = []
        self._current_garden_id: str | None = None
        self._images: dict[str, str] = {}

    def read_gardens(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._gardens)

    def write_gardens(self, records: list[dict[str, Any]]) -> None:
        self._gardens = copy.deepcopy(records)

    def read_current_garden_id(self) -> str | None:
        return self._current_garden_id

    def write_current_garden_id(self, garden_id: str | None) -> None:
        self._current_garden_id = garden_id

    def read_image(self, garden_id: str) -> str | None:
        return self._images.get(garden_id)

    def write_image(self, garden_id: str, image_ref: str) -> None:
        self._images[garden_id] = image_ref

    def delete_image(self, garden_id: str) -> None:
        self._images.pop(garden_id, None)


class JsonFileStorage(GardenStorage):
    """JSON files under one root directory.

    Layout::

        <root>/gardens.json           list of garden records
        <root>/current_garden.json    {"gardenId": "..."} or {"gardenId": null}
        <root>/images/<garden_id>.txt opaque image handle

    Parameters
    ----------
    root_dir : str | Path
        Storage directory; created on first write.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self.root_dir = Path(root_dir)

    @property
    def gardens_path(self) -> Path:
        return self.root_dir / GARDENS_FILE_NAME

    @property
    def current_garden_path(self) -> Path:
        return self.root_dir / CURRENT_GARDEN_FILE_NAME

    def image_path(self, garden_id: str) -> Path:
        return self.root_dir / IMAGE_DIR_NAME / f"{garden_id}.txt"

    def read_gardens(self) -> list[dict[str, Any]]:
        data = self._read_json(self.gardens_path, default=[])
        if not isinstance(data, list):
            raise _failure(f"{self.gardens_path} does not hold a list of gardens")
        return data

    def write_gardens(self, records: list[dict[str, Any]]) -> None:
        self._write_text(self.gardens_path, _dump_json(records, self.gardens_path))

    def read_current_garden_id(self) -> str | None:
        data = self._read_json(self.current_garden_path, default={"gardenId": None})
        if not isinstance(data, dict):
            raise _failure(f"{self.current_garden_path} does not hold an object")
        garden_id = data.get("gardenId")
        return None if garden_id is None else str(garden_id)

    def write_current_garden_id(self, garden_id: str | None) -> None:
        payload = _dump_json({"gardenId": garden_id}, self.current_garden_path)
        self._write_text(self.current_garden_path, payload)

    def read_image(self, garden_id: str) -> str | None:
        path = self.image_path(garden_id)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise _failure(f"Failed to read image {path}: {exc}") from exc

    def write_image(self, garden_id: str, image_ref: str) -> None:
        self._write_text(self.image_path(garden_id), image_ref)

    def delete_image(self, garden_id: str) -> None:
        path = self.image_path(garden_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise _failure(f"Failed to delete image {path}: {exc}") from exc

    def _read_json(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise _failure(f"Failed to read {path}: {exc}") from exc

    def _write_text(self, path: Path, text: str) -> None:
        """Write via a sibling temp file and ``os.replace``."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise _failure(f"Failed to write {path}: {exc}") from exc


def _dump_json(data: Any, path: Path) -> str:
    try:
        return json.dumps(data, ensure_ascii=False, indent=2)
    except (TypeError, ValueError) as exc:
        raise _failure(f"Cannot serialize record for {path}: {exc}") from exc


def _failure(message: str) -> StorageFailure:
    logger.error(message)
    return StorageFailure(message)
