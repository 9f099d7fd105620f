"""CursorStore protocol - optional persistence for tracker watermarks."""

from __future__ import annotations

from typing import Protocol


class CursorStore(Protocol):
    """Persists the highest processed transaction version per tracker.

    A tracker is keyed by (address, module filter, batch filter) so that
    differently filtered runs against the same account never share a cursor.
    """

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def get_watermark(
        self, address: str, module: str | None, batch_id: str | None,
    ) -> int | None:
        ...

    async def set_watermark(
        self, address: str, module: str | None, batch_id: str | None, version: int,
    ) -> None:
        ...
