from __future__ import annotations

from typing import Iterator

import httpx

from .errors import TransportError


class AttachmentStream:
    """An attachment body still being received. Close it when done."""

    def __init__(self, response: httpx.Response):
        self._r = response

    @property
    def content_type(self) -> str:
        return self._r.headers.get("Content-Type", "")

    @property
    def closed(self) -> bool:
        return self._r.is_closed

    def read(self) -> bytes:
        try:
            return self._r.read()
        except httpx.RequestError as e:
            raise TransportError(f"reading attachment failed: {e}") from e
        finally:
            self._r.close()

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        try:
            yield from self._r.iter_bytes(chunk_size)
        except httpx.RequestError as e:
            raise TransportError(f"reading attachment failed: {e}") from e
        finally:
            self._r.close()

    def close(self) -> None:
        self._r.close()

    def __enter__(self) -> "AttachmentStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
