"""
Unit tests for the development admin seed.
"""

import pytest

from app.application.dev_seed_admin import ensure_dev_admin
from app.crosscutting.config import Settings
from app.identity.users import UserRole

pytestmark = pytest.mark.unit


def _fake_hasher(password: str) -> str:
    return f"hashed:{password}"


def _settings(**overrides) -> Settings:
    values = dict(
        app_env="development",
        dev_seed_admin=True,
        dev_seed_admin_email="Admin@Local",
        dev_seed_admin_password="admin-pass",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.mark.asyncio
async def test_disabled_is_noop(relational):
    await ensure_dev_admin(
        _settings(dev_seed_admin=False), relational=relational, password_hasher=_fake_hasher
    )

    assert await relational.count_users() == 0


@pytest.mark.asyncio
async def test_refuses_outside_development(relational):
    with pytest.raises(RuntimeError, match="DEV_SEED_ADMIN"):
        await ensure_dev_admin(
            _settings(app_env="test"), relational=relational, password_hasher=_fake_hasher
        )


@pytest.mark.asyncio
async def test_creates_admin_when_missing(relational):
    await ensure_dev_admin(_settings(), relational=relational, password_hasher=_fake_hasher)

    admin = await relational.get_user_by_email("admin@local")
    assert admin.role == UserRole.ADMIN
    assert admin.username == "admin"
    assert admin.password_hash == "hashed:admin-pass"


@pytest.mark.asyncio
async def test_existing_user_is_left_alone(relational, make_user):
    await make_user("admin@local", password="original-pass")

    await ensure_dev_admin(_settings(), relational=relational, password_hasher=_fake_hasher)

    user = await relational.get_user_by_email("admin@local")
    assert user.role == UserRole.USER
    assert user.password_hash != "hashed:admin-pass"


@pytest.mark.asyncio
async def test_force_reset_updates_password_and_role(relational, make_user):
    await make_user("admin@local")

    await ensure_dev_admin(
        _settings(dev_seed_admin_force_reset=True),
        relational=relational,
        password_hasher=_fake_hasher,
    )

    user = await relational.get_user_by_email("admin@local")
    assert user.role == UserRole.ADMIN
    assert user.password_hash == "hashed:admin-pass"


@pytest.mark.asyncio
async def test_empty_credentials_are_rejected(relational):
    with pytest.raises(ValueError):
        await ensure_dev_admin(
            _settings(dev_seed_admin_password=""),
            relational=relational,
            password_hasher=_fake_hasher,
        )
