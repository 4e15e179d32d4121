"""Dashboard counters kept current from change notifications."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping

from loguru import logger

from app.gateway.base import DataGateway
from app.services.live import LiveResource, UpdateCallback


@dataclass(frozen=True)
class CountQuery:
    """One count query: rows of `collection` equal to every value in `filters`."""

    collection: str
    filters: Mapping[str, Any] = field(default_factory=dict)


async def collect_counts(
    gateway: DataGateway, counts: Mapping[str, CountQuery]
) -> dict[str, int]:
    """
    Issue every count query concurrently and combine the results.

    All queries are awaited before anything is returned. If any of them
    failed, the first failure is raised and no partial result is produced.

    Returns:
        dict[str, int]: Count name -> value.

    Raises:
        GatewayError: The first failure among the count queries.
    """
    names = list(counts)
    results = await asyncio.gather(
        *(gateway.count(count.collection, count.filters) for count in counts.values()),
        return_exceptions=True,
    )
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            logger.warning(f"Count '{name}' failed: {result}")
            raise result
    return dict(zip(names, results))  # type: ignore[arg-type]


class AggregateCounter(LiveResource[dict[str, int]]):
    """Snapshot of several counts, recomputed when any counted collection changes.

    When a batch fails the last complete snapshot stays published; before the
    first success every count reads 0.
    """

    def __init__(
        self,
        gateway: DataGateway,
        counts: Mapping[str, CountQuery],
        *,
        name: str = "stats",
        on_update: UpdateCallback | None = None,
    ):
        super().__init__(
            gateway,
            [count.collection for count in counts.values()],
            name=name,
            on_update=on_update,
        )
        self.counts = dict(counts)
        self._snapshot = {count_name: 0 for count_name in self.counts}

    @property
    def snapshot(self) -> dict[str, int]:
        return dict(self._snapshot)

    async def fetch(self) -> dict[str, int]:
        return await collect_counts(self.gateway, self.counts)

    def apply(self, result: dict[str, int]) -> None:
        self._snapshot = dict(result)
