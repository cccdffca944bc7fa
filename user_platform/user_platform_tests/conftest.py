"""
Shared fixtures: an in-memory database per test and a stubbed identity provider.
"""
import uuid
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from user_platform.user_platform.user_service.db import Base, build_engine
from user_platform.user_platform.user_service.identity_provider import KeycloakAdminClient
from user_platform.user_platform.user_service import models  # noqa: F401


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def identity_provider():
    """Keycloak client stub handing out a fresh id per created account."""
    provider = Mock(spec=KeycloakAdminClient)
    provider.create_account.side_effect = lambda *args, **kwargs: str(uuid.uuid4())
    return provider
