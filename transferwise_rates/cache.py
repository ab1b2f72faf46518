"""Persistence of the last raw rates payload.

A cache stores one opaque text blob: the body of the last valid response.
Two implementations share the :class:`CacheStore` interface:

* :class:`FileCacheStore` keeps the blob in a file.
* :class:`CallbackCacheStore` delegates to user supplied functions, which
  makes it easy to plug in Redis, a database row or anything else::

      def cache(text=None):
          if text is None:
              return redis.get("rates")
          redis.set("rates", text)

      bank = ExchangeBank(cache=cache)
"""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Union

from .exceptions import InvalidCache

logger = logging.getLogger(__name__)

CacheTarget = Union["CacheStore", str, "os.PathLike[str]", Callable[..., Optional[str]], None]


class CacheStore(ABC):
    """Read/write capability for the raw rates payload."""

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the last written payload, or ``None`` if there is none."""

    @abstractmethod
    def write(self, text: str) -> None:
        """Persist ``text`` exactly as given."""


class FileCacheStore(CacheStore):
    # Files are opened with newline="" so the payload is kept byte for byte.

    def __init__(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self.path = Path(path)

    def read(self) -> Optional[str]:
        try:
            with self.path.open(encoding="utf-8", newline="") as fh:
                return fh.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read rates cache %s: %s", self.path, exc)
            return None

    def write(self, text: str) -> None:
        # readers in other processes only ever see a complete file
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                newline="",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(text)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise InvalidCache(f"Cannot write rates cache {self.path}: {exc}") from exc

    def __repr__(self) -> str:
        return f"FileCacheStore({str(self.path)!r})"


class CallbackCacheStore(CacheStore):
    """Cache backed by functions.

    Either pass a single ``callback`` that is called as ``callback(None)`` to
    read and ``callback(text)`` to write, or a ``reader``/``writer`` pair.
    """

    def __init__(
        self,
        callback: Optional[Callable[[Optional[str]], Optional[str]]] = None,
        *,
        reader: Optional[Callable[[], Optional[str]]] = None,
        writer: Optional[Callable[[str], object]] = None,
    ) -> None:
        if callback is not None:
            reader = reader or (lambda: callback(None))
            writer = writer or callback
        if reader is None or writer is None:
            raise ValueError("CallbackCacheStore needs a callback or both reader and writer")
        self._reader = reader
        self._writer = writer

    def read(self) -> Optional[str]:
        value = self._reader()
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def write(self, text: str) -> None:
        try:
            self._writer(text)
        except Exception as exc:
            raise InvalidCache(f"Cache writer failed: {exc}") from exc


def build_cache_store(target: CacheTarget) -> Optional[CacheStore]:
    """Turn a cache setting into a :class:`CacheStore`.

    ``None`` disables caching, a path gives a :class:`FileCacheStore` and a
    callable gives a :class:`CallbackCacheStore`.
    """
    if target is None or isinstance(target, CacheStore):
        return target
    if isinstance(target, (str, os.PathLike)):
        return FileCacheStore(target)
    if callable(target):
        return CallbackCacheStore(target)
    raise TypeError(f"Unsupported cache target: {target!r}")
