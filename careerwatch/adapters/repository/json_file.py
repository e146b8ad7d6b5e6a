"""
JSON file snapshot store.

Keeps every source's latest snapshot in a single JSON document keyed by URL.
File access runs in a worker thread; writes go to a temp file that atomically
replaces the document, so a crash never leaves a half-written store behind.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from careerwatch.adapters.base import JobRepository
from careerwatch.core.errors import LookupFailure, PersistFailure
from careerwatch.core.locks import KeyedLock
from careerwatch.core.models import JobCollection

logger = logging.getLogger(__name__)


def _read_document(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object in {path}")
    return data


def _read_for_update(path: Path) -> Dict[str, Any]:
    """
    Current document, or an empty one when the file cannot be parsed.
    An unreadable file is moved aside to `<name>.corrupt` rather than lost.
    """
    try:
        return _read_document(path)
    except ValueError as e:
        backup = path.with_name(f"{path.name}.corrupt")
        os.replace(path, backup)
        logger.error(f"Moved unreadable snapshot store {path} to {backup}: {e}")
        return {}


def _write_document(path: Path, document: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, delete=False, suffix=".tmp"
    ) as tmp:
        json.dump(document, tmp, ensure_ascii=False, indent=2)
        tmp_path = Path(tmp.name)
    try:
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


class JsonFileRepository(JobRepository):
    """
    Persistent JobRepository backed by one JSON file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._locks = KeyedLock()
        # Guards the read-modify-write of the whole document.
        self._file_lock = asyncio.Lock()

    async def save_job_collection(self, collection: JobCollection) -> None:
        url = collection.source_url
        async with self._locks(url):
            async with self._file_lock:
                try:
                    document = await asyncio.to_thread(_read_for_update, self.path)
                    document[url] = collection.to_dict()
                    await asyncio.to_thread(_write_document, self.path, document)
                except (OSError, ValueError) as e:
                    raise PersistFailure(
                        f"Failed to save job collection to {self.path}: {e}", url=url
                    ) from e
        logger.debug(f"Stored {len(collection.jobs)} jobs for {url} in {self.path}")

    async def get_latest_job_collection(self, url: str) -> JobCollection:
        async with self._locks(url):
            try:
                document = await asyncio.to_thread(_read_document, self.path)
                entry = document.get(url)
                if entry is None:
                    return JobCollection()
                return JobCollection.from_dict(entry)
            except (OSError, ValueError, KeyError, TypeError) as e:
                raise LookupFailure(
                    f"Failed to read job collection from {self.path}: {e}", url=url
                ) from e
