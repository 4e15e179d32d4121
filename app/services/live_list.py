"""Live, filterable list of one backend collection."""

from typing import Any, Mapping, Sequence

from app.gateway.base import DataGateway, QueryOptions, Record
from app.models.enums import ViewContent
from app.models.views import ListView
from app.services.filtering import filter_records
from app.services.live import LiveResource, UpdateCallback


class LiveListController(LiveResource[list[Record]]):
    """Keeps the rows of `collection` current for a mounted list view.

    The fetched list is only ever replaced wholesale by a refresh or patched
    by an applied status change; filtering derives views from it and never
    modifies it.
    """

    def __init__(
        self,
        gateway: DataGateway,
        collection: str,
        options: QueryOptions,
        *,
        filter_fields: Sequence[str] = (),
        key_field: str = "id",
        name: str | None = None,
        on_update: UpdateCallback | None = None,
    ):
        super().__init__(
            gateway, [collection], name=name or collection, on_update=on_update
        )
        self.collection = collection
        self.options = options
        self.filter_fields = tuple(filter_fields)
        self.key_field = key_field
        self._records: list[Record] = []

    @property
    def records(self) -> list[Record]:
        return list(self._records)

    async def fetch(self) -> list[Record]:
        return await self.gateway.query(self.collection, self.options)

    def apply(self, result: list[Record] | None) -> None:
        self._records = list(result or [])

    def find(self, key: Any) -> Record | None:
        for record in self._records:
            if str(record.get(self.key_field)) == str(key):
                return record
        return None

    def patch(self, key: Any, fields: Mapping[str, Any]) -> bool:
        """
        Overwrite fields of one held record in place of waiting for a refresh.

        Returns:
            bool: False when no record with `key` is currently held.
        """
        for index, record in enumerate(self._records):
            if str(record.get(self.key_field)) == str(key):
                updated = list(self._records)
                updated[index] = {**record, **fields}
                self._records = updated
                return True
        return False

    def filtered(self, query: str = "") -> list[Record]:
        return filter_records(self._records, query, self.filter_fields)

    def view(self, query: str = "") -> ListView:
        """Project the held list through `query` into the page's current view."""
        if self.loading:
            return ListView(page=self.name, state=self.state, query=query)
        records = self.filtered(query)
        return ListView(
            page=self.name,
            state=self.state,
            content=ViewContent.POPULATED if records else ViewContent.EMPTY,
            query=query,
            total=len(self._records),
            records=records,
        )
