"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Force the test environment (in-memory stores, fake external services)
  - Reset container singletons between tests
  - Provide core components wired over in-memory stores

Collaborators:
  - pytest / pytest-asyncio
  - app.container (reset_container)
  - app.infrastructure.repositories.in_memory (stores with fault injection)
  - app.infrastructure.services.fakes (identity provider, mail, payments)

Notes:
  - Stores expose `faults` to simulate outages and slow calls
  - A short store timeout keeps timeout tests fast
"""

import os
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ["APP_ENV"] = "test"
os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests")

from app.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from app.application.dual_store import DualStoreAccessor  # noqa: E402
from app.application.role_sync import RoleStateSynchronizer  # noqa: E402
from app.container import reset_container  # noqa: E402
from app.identity.auth_users import hash_password  # noqa: E402
from app.identity.otp import OneTimeCodeAuthenticator  # noqa: E402
from app.identity.resolver import IdentityResolver  # noqa: E402
from app.identity.users import UserDraft, UserRole  # noqa: E402
from app.infrastructure.repositories.in_memory import (  # noqa: E402
    InMemoryCodeStore,
    InMemoryDocumentStore,
    InMemoryRelationalStore,
)
from app.infrastructure.services.fakes import (  # noqa: E402
    FakeIdentityProvider,
    RecordingNotificationChannel,
)
from app.domain.entities import CodePurpose  # noqa: E402

STORE_TIMEOUT_S = 0.2


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


@pytest.fixture(autouse=True)
def _fresh_container():
    app_config.get_settings.cache_clear()
    reset_container()
    yield
    reset_container()


# ============================================================================
# Stores and external services
# ============================================================================


@pytest.fixture
def relational() -> InMemoryRelationalStore:
    return InMemoryRelationalStore()


@pytest.fixture
def document() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def code_store() -> InMemoryCodeStore:
    return InMemoryCodeStore()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def mailbox() -> RecordingNotificationChannel:
    return RecordingNotificationChannel()


# ============================================================================
# Core components
# ============================================================================


@pytest.fixture
def accessor(relational, document) -> DualStoreAccessor:
    return DualStoreAccessor(relational, document, timeout_s=STORE_TIMEOUT_S)


@pytest.fixture
def synchronizer(relational, document, identity_provider) -> RoleStateSynchronizer:
    return RoleStateSynchronizer(
        relational, document, identity_provider, timeout_s=STORE_TIMEOUT_S
    )


@pytest.fixture
def resolver(relational, document, synchronizer) -> IdentityResolver:
    return IdentityResolver(
        relational, document, synchronizer, timeout_s=STORE_TIMEOUT_S
    )


class FrozenClock:
    """Reloj manual para flujos con expiración."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **delta):
        from datetime import timedelta

        self.now = self.now + timedelta(**delta)


@pytest.fixture
def clock() -> FrozenClock:
    from datetime import datetime, timezone

    return FrozenClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def codes(code_store, mailbox, clock) -> OneTimeCodeAuthenticator:
    return OneTimeCodeAuthenticator(
        code_store,
        mailbox,
        ttl_minutes={purpose: 10 for purpose in CodePurpose},
        max_attempts=3,
        clock=clock,
    )


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def make_user(relational):
    """Crea un usuario en el store relacional (password = 'password123')."""

    async def _make(
        email: str = "user@example.com",
        username: str | None = None,
        *,
        role: UserRole = UserRole.USER,
        external_uid: str | None = None,
        password: str = "password123",
    ):
        return await relational.create_user(
            UserDraft(
                email=email,
                username=username or email.split("@", 1)[0],
                password_hash=hash_password(password),
                role=role,
                external_uid=external_uid,
            )
        )

    return _make
