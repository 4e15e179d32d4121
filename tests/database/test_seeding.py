"""Tests for the first-operator and sample-data seeding of the local backend."""

from unittest.mock import patch

import pytest
from sqlmodel import Session, func, select

from app.core.config import Settings
from app.core.password import verify_password
from app.database.init_db import init_db
from app.database.init_sample_data import (
    SAMPLE_COMMUNITIES,
    SAMPLE_REQUESTS,
    SAMPLE_USERS,
    init_sample_data,
)
from app.models.admin import Admin
from app.models.community import Community
from app.models.enums import RequestStatus
from app.models.request import JoinRequest
from app.models.user import Profile, User


def make_settings(**overrides) -> Settings:
    return Settings(SECRET_KEY="test-secret-key-for-testing-only-min-32-chars", **overrides)


def count(session: Session, model) -> int:
    return session.exec(select(func.count()).select_from(model)).one()


class TestInitDb:
    def test_creates_first_operator(self, session: Session):
        settings = make_settings(
            FIRST_SUPERUSER_EMAIL="root@example.com",
            FIRST_SUPERUSER_PASSWORD="rootpassword123",
            FIRST_SUPERUSER_USERNAME="root",
        )
        with patch("app.database.init_db.get_settings", return_value=settings):
            init_db(session)
            init_db(session)

        admins = session.exec(select(Admin)).all()
        assert len(admins) == 1
        assert admins[0].username == "root"
        assert verify_password("rootpassword123", admins[0].hashed_password)

    def test_skips_when_not_configured(self, session: Session):
        with patch("app.database.init_db.get_settings", return_value=make_settings()):
            init_db(session)
        assert count(session, Admin) == 0


class TestInitSampleData:
    def test_seeds_both_variants(self, session: Session):
        with patch(
            "app.database.init_sample_data.get_settings", return_value=make_settings()
        ):
            init_sample_data(session)

        assert count(session, User) == len(SAMPLE_USERS)
        assert count(session, JoinRequest) == len(SAMPLE_REQUESTS)
        assert count(session, Community) == len(SAMPLE_COMMUNITIES)
        assert count(session, Profile) == len(SAMPLE_USERS)

        statuses = {r.status for r in session.exec(select(JoinRequest)).all()}
        assert statuses == set(RequestStatus)
        alpha = session.exec(
            select(Community).where(Community.com_id == "alpha-club")
        ).one()
        assert alpha.status is RequestStatus.PENDING
        assert alpha.location == {"latitude": 48.8566, "longitude": 2.3522}

    def test_is_idempotent(self, session: Session):
        with patch(
            "app.database.init_sample_data.get_settings", return_value=make_settings()
        ):
            init_sample_data(session)
            init_sample_data(session)

        assert count(session, User) == len(SAMPLE_USERS)

    def test_refuses_production(self, session: Session):
        settings = make_settings(ENVIRONMENT="production")
        with patch("app.database.init_sample_data.get_settings", return_value=settings):
            with pytest.raises(RuntimeError, match="production"):
                init_sample_data(session)
        assert count(session, User) == 0
