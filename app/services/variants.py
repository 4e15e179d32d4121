"""Dashboard variants: which collections a deployment lists, moderates and counts.

Both variants drive the same generic controllers; only their configuration
differs.
"""

from dataclasses import dataclass, field
from typing import Mapping

from pydantic import BaseModel

from app.exceptions import NotFoundError
from app.gateway.base import DataGateway, Join, QueryOptions
from app.models.stats import CommunityStats, RequestStats
from app.models.views import PageDescription, VariantDescription
from app.services.live_list import LiveListController
from app.services.stats import AggregateCounter, CountQuery
from app.services.status_transition import StatusTransitionAction


@dataclass(frozen=True)
class ListPage:
    name: str
    title: str
    collection: str
    options: QueryOptions
    filter_fields: tuple[str, ...]
    columns: tuple[str, ...]
    moderated: bool = False
    status_field: str = "status"
    key_field: str = "id"

    def controller(self, gateway: DataGateway, **kwargs) -> LiveListController:
        return LiveListController(
            gateway,
            self.collection,
            self.options,
            filter_fields=self.filter_fields,
            key_field=self.key_field,
            name=self.name,
            **kwargs,
        )

    def transition_action(
        self, gateway: DataGateway, controller: LiveListController | None = None
    ) -> StatusTransitionAction:
        """
        Raises:
            NotFoundError: If the page lists records that are not moderated.
        """
        if not self.moderated:
            raise NotFoundError("Moderated page", self.name)
        return StatusTransitionAction(
            gateway,
            self.collection,
            status_field=self.status_field,
            controller=controller,
        )

    def describe(self) -> PageDescription:
        return PageDescription(
            name=self.name,
            title=self.title,
            collection=self.collection,
            columns=list(self.columns),
            filter_fields=list(self.filter_fields),
            moderated=self.moderated,
        )


@dataclass(frozen=True)
class DashboardVariant:
    name: str
    pages: tuple[ListPage, ...]
    counts: Mapping[str, CountQuery] = field(default_factory=dict)
    stats_model: type[BaseModel] = RequestStats
    accepts_admin_urls: bool = False

    def page(self, name: str) -> ListPage:
        for page in self.pages:
            if page.name == name:
                return page
        raise NotFoundError("Page", name)

    def counter(self, gateway: DataGateway, **kwargs) -> AggregateCounter:
        return AggregateCounter(gateway, self.counts, **kwargs)

    def stats(self, snapshot: Mapping[str, int]) -> BaseModel:
        return self.stats_model(**snapshot)

    def describe(self) -> VariantDescription:
        return VariantDescription(
            name=self.name,
            pages=[page.describe() for page in self.pages],
            stats=list(self.counts),
            accepts_admin_urls=self.accepts_admin_urls,
        )


REQUESTS_VARIANT = DashboardVariant(
    name="requests",
    pages=(
        ListPage(
            name="users",
            title="Users",
            collection="users",
            options=QueryOptions(order_by="created_at"),
            filter_fields=("name", "email"),
            columns=("name", "email", "created_at"),
        ),
        ListPage(
            name="alerts",
            title="Alerts",
            collection="requests",
            options=QueryOptions(
                order_by="created_at",
                joins=(Join("users", ("name", "email"), foreign_key="user_id"),),
            ),
            filter_fields=("description",),
            columns=("users.name", "users.email", "description", "status", "created_at"),
            moderated=True,
        ),
    ),
    counts={
        "total_users": CountQuery("users"),
        "total_requests": CountQuery("requests"),
        "rejected_requests": CountQuery("requests", {"status": "rejected"}),
    },
    stats_model=RequestStats,
)

COMMUNITY_VARIANT = DashboardVariant(
    name="community",
    pages=(
        ListPage(
            name="users",
            title="Users",
            collection="profile",
            options=QueryOptions(order_by="id"),
            filter_fields=("name", "email"),
            columns=("name", "email", "gender", "dob", "created_at"),
        ),
        ListPage(
            name="communities",
            title="Communities",
            collection="community",
            options=QueryOptions(order_by="created_at"),
            filter_fields=("title",),
            columns=("title", "desc", "tags", "status", "created_at"),
            moderated=True,
        ),
    ),
    counts={
        "total_users": CountQuery("profile"),
        "total_communities": CountQuery("community"),
        "pending_communities": CountQuery("community", {"status": "pending"}),
    },
    stats_model=CommunityStats,
    accepts_admin_urls=True,
)

VARIANTS = {variant.name: variant for variant in (REQUESTS_VARIANT, COMMUNITY_VARIANT)}


def get_variant(name: str) -> DashboardVariant:
    """
    Raises:
        NotFoundError: If no variant is registered under `name`.
    """
    variant = VARIANTS.get(name)
    if variant is None:
        raise NotFoundError("Dashboard variant", name)
    return variant
