"""Chunk source contracts and a filesystem-backed chunk fetcher."""

from __future__ import annotations

import gzip
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from replaysync.domain import ChunkLocator
from replaysync.errors import SourceFetchError
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"


class ChunkFetcher(Protocol):
    """Retrieves the chunk listing and raw chunk payloads of a recording."""

    def list_sources(self, session_id: str) -> Sequence[ChunkLocator]:
        """Returns the chunk locators of one recording, in replay order."""
        ...

    def fetch_chunk(self, locator: ChunkLocator) -> str | bytes:
        """Returns the raw payload named by a locator."""
        ...


class DirectoryChunkFetcher:
    """Serves exported chunk files from a local directory.

    Each file below ``root/<session_id>`` (or ``root`` itself when no session
    id is given) is one chunk; files are replayed in name order.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _session_dir(self, session_id: str | None) -> Path:
        if not session_id:
            return self.root
        candidate = self.root / session_id
        if not candidate.is_dir():
            raise SourceFetchError(
                f"No chunk directory for session {session_id} in {self.root}"
            )
        return candidate

    def list_sources(self, session_id: str | None = None) -> list[ChunkLocator]:
        folder = self._session_dir(session_id)
        if not folder.is_dir():
            raise SourceFetchError(f"Chunk directory not found: {folder}")
        files = sorted(
            path.relative_to(self.root)
            for path in folder.iterdir()
            if path.is_file() and not path.name.startswith(".")
        )
        logger.info("Found %d chunk files in %s", len(files), folder)
        return [ChunkLocator(source="file", blob_key=str(path)) for path in files]

    def fetch_chunk(self, locator: ChunkLocator) -> str:
        start_key, _ = locator.key_range
        path = self.root / start_key
        try:
            payload = path.read_bytes()
        except OSError as err:
            raise SourceFetchError(f"Failed to read chunk {path}: {err}") from err
        if payload.startswith(_GZIP_MAGIC):
            try:
                payload = gzip.decompress(payload)
            except (OSError, EOFError) as err:
                raise SourceFetchError(f"Corrupt gzip chunk {path}: {err}") from err
        return payload.decode("utf-8", errors="replace")
