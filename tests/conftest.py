"""
Shared fixtures: in-memory SQLite database and a small organization roster.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scorg_hr.db.base import Base
from scorg_hr.db.init_db import init_db
from scorg_hr.db.models.organization import Organization
from scorg_hr.db.models.user import User


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    init_db(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def organization(db):
    org = Organization(rsi_org_id="TESTORG", name="Test Organization")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


@pytest.fixture
def other_organization(db):
    org = Organization(rsi_org_id="OTHERORG", name="Other Organization")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


def _make_user(db, handle, discord=None):
    user = User(rsi_handle=handle, discord_username=discord)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def applicant(db):
    return _make_user(db, "Applicant_One", "applicant#0001")


@pytest.fixture
def second_applicant(db):
    return _make_user(db, "Applicant_Two")


@pytest.fixture
def reviewer(db):
    return _make_user(db, "HR_Officer", "hr#1234")
