"""Document source reading files from a local directory tree.

The directory mirrors the blob container layout: the first path segment
under the root is the classification prefix, e.g.
``<root>/internal/policy-remote-access.pdf``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection
from pathlib import Path

import structlog

from ragdesk.interfaces.document_source import IDocumentSource
from ragdesk.utils.errors import ProviderFatalError

logger = structlog.get_logger(logger_name=__name__)


class LocalDirectoryDocumentSource(IDocumentSource):
    """Lists and reads documents below *root*."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    async def list_documents(
        self,
        prefix: str,
        max_files: int,
        extensions: Collection[str] | None = None,
    ) -> list[str]:
        names = await asyncio.to_thread(self._walk, prefix)
        selected: list[str] = []
        for name in names:
            if extensions is not None and Path(name).suffix.lower() not in extensions:
                continue
            selected.append(name)
            if len(selected) >= max_files:
                break
        logger.debug("local_source_listed", prefix=prefix, found=len(names), selected=len(selected))
        return selected

    async def download(self, name: str) -> bytes:
        path = self._resolve(name)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise ProviderFatalError(
                message=f"Cannot read {name}: {exc.strerror or exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "local_directory"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _walk(self, prefix: str) -> list[str]:
        if not self._root.is_dir():
            return []
        normalized = prefix.replace("\\", "/").lstrip("/")
        names = [
            path.relative_to(self._root).as_posix()
            for path in self._root.rglob("*")
            if path.is_file()
        ]
        return sorted(name for name in names if name.startswith(normalized))

    def _resolve(self, name: str) -> Path:
        path = (self._root / name.replace("\\", "/").lstrip("/")).resolve()
        if not path.is_relative_to(self._root):
            raise ProviderFatalError(
                message=f"Document name escapes the source root: {name}",
                provider_name=self.get_provider_name(),
            )
        return path
