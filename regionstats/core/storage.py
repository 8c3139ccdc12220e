"""Storage adapter abstractions."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod


class StorageAdapter(ABC):
    """Abstract interface for persisting run outputs."""

    @abstractmethod
    def join(self, *parts: str) -> str:
        """Join path components into a destination URI."""

    @abstractmethod
    def write_bytes(self, uri: str, data: bytes) -> str:
        """Write bytes to the destination and return the URI."""

    def write_text(self, uri: str, text: str) -> str:
        """Write UTF-8 text to *uri*."""
        return self.write_bytes(uri, text.encode("utf-8"))


class LocalFS(StorageAdapter):
    """Store files on the local filesystem."""

    def join(self, *parts: str) -> str:  # pragma: no cover - trivial
        return os.path.join(*parts)

    def write_bytes(self, uri: str, data: bytes) -> str:
        dirpath = os.path.dirname(uri) or "."
        os.makedirs(dirpath, exist_ok=True)
        with open(uri, "wb") as fh:
            fh.write(data)
        return uri
