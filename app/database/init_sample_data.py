"""Sample data initialization script for non-production environments.

Seeds the local tables of both dashboard variants so every page and counter
has something to show in development and staging:
- users and join requests in every status (requests variant)
- profiles and communities in every status (community variant)

Idempotent: skips when the sample accounts already exist. Refuses to run in
production.
"""

from datetime import date, datetime, timedelta
from typing import Any

from loguru import logger
from sqlmodel import Session, select

from app.core.config import get_settings
from app.models.community import Community, CommunityCreate
from app.models.enums import RequestStatus
from app.models.request import JoinRequest
from app.models.user import GeoPoint, Profile, ProfileCreate, User

SAMPLE_USERS: list[dict[str, Any]] = [
    {"key": "alice", "name": "Alice Johnson", "email": "alice@example.com"},
    {"key": "bob", "name": "Bob Smith", "email": "bob@example.com"},
    {"key": "charlie", "name": "Charlie Brown", "email": "charlie@example.com"},
    {"key": "dana", "name": None, "email": "dana@example.com"},
]

SAMPLE_REQUESTS: list[dict[str, Any]] = [
    {"user": "alice", "description": "Join the river cleanup crew", "status": RequestStatus.PENDING},
    {"user": "bob", "description": "Access to the tool library", "status": RequestStatus.PENDING},
    {"user": "charlie", "description": "Spam spam spam", "status": RequestStatus.REJECTED},
    {"user": "alice", "description": "Volunteer at the food bank", "status": RequestStatus.APPROVED},
]

SAMPLE_COMMUNITIES: list[dict[str, Any]] = [
    {
        "com_id": "alpha-club",
        "title": "Alpha Club",
        "desc": "Weekly chess evenings",
        "tags": "chess,games",
        "location": GeoPoint(latitude=48.8566, longitude=2.3522),
        "status": RequestStatus.PENDING,
    },
    {
        "com_id": "beta-group",
        "title": "Beta Group",
        "desc": "Neighbourhood gardening",
        "tags": "garden,outdoor",
        "location": None,
        "status": RequestStatus.APPROVED,
    },
    {
        "com_id": "gamma-circle",
        "title": "Gamma Circle",
        "desc": "Book club",
        "tags": "books",
        "location": GeoPoint(latitude=45.764, longitude=4.8357),
        "status": RequestStatus.PENDING,
    },
]


def init_sample_data(session: Session) -> None:
    """
    Initialize sample data for non-production environments.

    Args:
        session: Database session for data creation

    Raises:
        RuntimeError: If attempted to run in production environment
    """
    settings = get_settings()
    if settings.ENVIRONMENT == "production":
        raise RuntimeError(
            "Sample data initialization cannot run in production environment!"
        )

    if session.exec(select(User).where(User.email == "alice@example.com")).first():
        logger.info("Sample data already exists. Skipping initialization.")
        return

    logger.info(f"Initializing sample data for {settings.ENVIRONMENT} environment...")
    now = datetime.now()

    # --- 1. Users (requests variant) ---
    logger.info(f"Creating {len(SAMPLE_USERS)} Users...")
    users: dict[str, User] = {}
    for index, u_conf in enumerate(SAMPLE_USERS):
        user = User(
            name=u_conf["name"],
            email=u_conf["email"],
            created_at=now - timedelta(days=len(SAMPLE_USERS) - index),
        )
        session.add(user)
        users[u_conf["key"]] = user
    session.flush()

    # --- 2. Join requests ---
    logger.info(f"Creating {len(SAMPLE_REQUESTS)} Requests...")
    for index, r_conf in enumerate(SAMPLE_REQUESTS):
        session.add(
            JoinRequest(
                user_id=users[r_conf["user"]].id,
                description=r_conf["description"],
                status=r_conf["status"],
                created_at=now - timedelta(hours=len(SAMPLE_REQUESTS) - index),
            )
        )

    # --- 3. Communities (community variant) ---
    logger.info(f"Creating {len(SAMPLE_COMMUNITIES)} Communities...")
    for index, c_conf in enumerate(SAMPLE_COMMUNITIES):
        community_in = CommunityCreate(
            com_id=c_conf["com_id"],
            title=c_conf["title"],
            desc=c_conf["desc"],
            tags=c_conf["tags"],
            location=c_conf["location"],
        )
        session.add(
            Community(
                **community_in.model_dump(exclude={"location"}),
                location=(
                    community_in.location.model_dump() if community_in.location else None
                ),
                status=c_conf["status"],
                created_at=now - timedelta(hours=len(SAMPLE_COMMUNITIES) - index),
            )
        )

    # --- 4. Profiles ---
    logger.info(f"Creating {len(SAMPLE_USERS)} Profiles...")
    for u_conf in SAMPLE_USERS:
        profile_in = ProfileCreate(
            user_id=users[u_conf["key"]].id,
            email=u_conf["email"],
            name=u_conf["name"],
            dob=date(1990, 1, 1),
            range=10,
            tag=["outdoor"],
            requests=["alpha-club"] if u_conf["key"] == "alice" else [],
        )
        session.add(
            Profile(
                **profile_in.model_dump(exclude={"last_loc"}),
                last_loc=profile_in.last_loc.model_dump() if profile_in.last_loc else None,
            )
        )

    session.commit()
    logger.info(
        f"Sample data initialized successfully for {settings.ENVIRONMENT} environment"
    )
