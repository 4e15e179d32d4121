"""One-shot dashboard endpoints.

Each request fetches fresh data from the backend; nothing is cached between
requests. The live counterparts of these views are in `app.routers.live`.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from app.core.dependencies import get_current_session, get_gateway, get_variant
from app.exceptions import NotFoundError
from app.gateway.base import DataGateway, QueryOptions
from app.models.admin_url import AdminUrlPublic
from app.models.enums import Decision, ViewContent, ViewState
from app.models.views import ListView, TransitionOutcome, VariantDescription
from app.services.admin_url import submit_admin_url
from app.services.filtering import filter_records
from app.services.stats import collect_counts
from app.services.variants import DashboardVariant

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(get_current_session)],
)


@router.get("/variant", response_model=VariantDescription)
def read_variant(variant: Annotated[DashboardVariant, Depends(get_variant)]):
    return variant.describe()


@router.get("/stats")
async def read_stats(
    gateway: Annotated[DataGateway, Depends(get_gateway)],
    variant: Annotated[DashboardVariant, Depends(get_variant)],
) -> dict[str, int]:
    """
    Count every stat of the active variant concurrently.

    Raises:
        GatewayError: Mapped to 502 when any count fails; no partial result is returned.
    """
    counts = await collect_counts(gateway, variant.counts)
    return variant.stats(counts).model_dump()


@router.get("/pages/{page_name}", response_model=ListView)
async def read_page(
    page_name: str,
    gateway: Annotated[DataGateway, Depends(get_gateway)],
    variant: Annotated[DashboardVariant, Depends(get_variant)],
    q: Annotated[str, Query(max_length=200)] = "",
):
    """
    Fetch a page's records and filter them by `q`.

    Raises:
        NotFoundError: If the variant has no page named `page_name`.
        GatewayError: Mapped to 502 when the backend read fails.
    """
    page = variant.page(page_name)
    records = await gateway.query(page.collection, page.options)
    filtered = filter_records(records, q, page.filter_fields)
    return ListView(
        page=page.name,
        state=ViewState.READY,
        content=ViewContent.POPULATED if filtered else ViewContent.EMPTY,
        query=q,
        total=len(records),
        records=filtered,
    )


@router.post(
    "/pages/{page_name}/records/{key}/{decision}", response_model=TransitionOutcome
)
async def transition_record(
    page_name: str,
    key: str,
    decision: Decision,
    gateway: Annotated[DataGateway, Depends(get_gateway)],
    variant: Annotated[DashboardVariant, Depends(get_variant)],
):
    """
    Approve or reject one pending record of a moderated page.

    Returns:
        TransitionOutcome: `applied` is False when the backend rejected the update.

    Raises:
        NotFoundError: If the page does not exist, is not moderated, or holds no record `key`.
        InvalidTransitionError: Mapped to 409 when the record is no longer pending.
    """
    page = variant.page(page_name)
    action = page.transition_action(gateway)
    records = await gateway.query(
        page.collection,
        QueryOptions(order_by=page.options.order_by, filters={page.key_field: key}),
    )
    if not records:
        raise NotFoundError(page.collection, key)
    return await action.apply(records[0][page.key_field], decision, current=records[0])


@router.post(
    "/admin-urls", response_model=AdminUrlPublic, status_code=status.HTTP_201_CREATED
)
async def create_admin_url(
    url: Annotated[str, Body(embed=True, max_length=2048)],
    gateway: Annotated[DataGateway, Depends(get_gateway)],
    variant: Annotated[DashboardVariant, Depends(get_variant)],
) -> Any:
    """
    Store an admin URL for the community variant.

    Raises:
        NotFoundError: If the active variant does not accept admin URLs.
        ValidationError: Mapped to 422 when `url` is not a valid http(s) URL.
    """
    if not variant.accepts_admin_urls:
        raise NotFoundError("Dashboard feature", "admin-urls")
    return await submit_admin_url(gateway, url)
