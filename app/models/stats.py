from pydantic import BaseModel


class RequestStats(BaseModel):
    """Counts shown on the dashboard of the requests variant."""

    total_users: int = 0
    total_requests: int = 0
    rejected_requests: int = 0


class CommunityStats(BaseModel):
    """Counts shown on the dashboard of the community variant."""

    total_users: int = 0
    total_communities: int = 0
    pending_communities: int = 0
