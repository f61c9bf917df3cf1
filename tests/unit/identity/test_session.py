"""
Unit tests for the per-request session context
(Authenticated | FirebaseOnly | Guest).
"""

import pytest
from fastapi import HTTPException

from app.domain.value_objects import ExternalIdentity
from app.identity.auth_users import create_access_token
from app.identity.users import User
from app.identity.session import (
    ActingKind,
    Authenticated,
    FirebaseOnly,
    Guest,
    SessionContextResolver,
    SessionCredentials,
    can_persist_lists,
    owner_id,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def sessions(resolver, identity_provider) -> SessionContextResolver:
    return SessionContextResolver(resolver, identity_provider)


@pytest.mark.asyncio
async def test_no_credentials_is_guest(sessions):
    context = await sessions.resolve(SessionCredentials())

    assert context == Guest()
    assert owner_id(context) is None
    assert not can_persist_lists(context)


@pytest.mark.asyncio
async def test_signed_token_is_authenticated(sessions, make_user):
    user = await make_user()
    token, _ = create_access_token(user)

    context = await sessions.resolve(SessionCredentials(access_token=token))

    assert isinstance(context, Authenticated)
    assert context.kind == ActingKind.AUTHENTICATED
    assert owner_id(context) == user.id
    assert can_persist_lists(context)


@pytest.mark.asyncio
async def test_tampered_token_is_rejected(sessions, make_user):
    token, _ = create_access_token(await make_user())

    with pytest.raises(HTTPException) as exc_info:
        await sessions.resolve(SessionCredentials(access_token=token + "x"))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_user_is_rejected(sessions):
    ghost = User(id=404, email="ghost@example.com", username="ghost", password_hash="x")
    token, _ = create_access_token(ghost)

    with pytest.raises(HTTPException) as exc_info:
        await sessions.resolve(SessionCredentials(access_token=token))

    assert exc_info.value.status_code == 401


class TestExternalToken:
    @pytest.mark.asyncio
    async def test_known_email_links_existing_user(
        self, sessions, identity_provider, make_user
    ):
        user = await make_user("linked@example.com")
        identity_provider.register(
            "tok-linked", ExternalIdentity(uid="fb-linked", email="linked@example.com")
        )

        context = await sessions.resolve(SessionCredentials(firebase_token="tok-linked"))

        assert isinstance(context, Authenticated)
        assert context.user.id == user.id
        assert context.user.external_uid == "fb-linked"

    @pytest.mark.asyncio
    async def test_new_identity_is_provisioned(self, sessions, identity_provider, relational):
        identity_provider.register(
            "tok-new",
            ExternalIdentity(uid="fb-brand-new", email="new@example.com", display_name="New"),
        )

        context = await sessions.resolve(SessionCredentials(firebase_token="tok-new"))

        assert isinstance(context, Authenticated)
        assert context.user.full_name == "New"
        assert await relational.count_users() == 1

    @pytest.mark.asyncio
    async def test_identity_without_email_is_firebase_only(self, sessions, identity_provider):
        identity_provider.register("tok-anon", ExternalIdentity(uid="fb-anon"))

        context = await sessions.resolve(SessionCredentials(firebase_token="tok-anon"))

        assert context == FirebaseOnly(uid="fb-anon")
        assert owner_id(context) is None
        assert not can_persist_lists(context)

    @pytest.mark.asyncio
    async def test_unknown_token_is_rejected(self, sessions):
        with pytest.raises(HTTPException) as exc_info:
            await sessions.resolve(SessionCredentials(firebase_token="bogus"))

        assert exc_info.value.status_code == 401


class TestUnsignedHeaders:
    @pytest.mark.asyncio
    async def test_ignored_unless_enabled(self, sessions, make_user):
        user = await make_user()

        context = await sessions.resolve(SessionCredentials(user_id_header=str(user.id)))

        assert context == Guest()

    @pytest.mark.asyncio
    async def test_accepted_when_enabled(self, resolver, make_user):
        sessions = SessionContextResolver(resolver, accept_unsigned_headers=True)
        user = await make_user(external_uid="fb-h")

        by_id = await sessions.resolve(SessionCredentials(user_id_header=str(user.id)))
        by_uid = await sessions.resolve(SessionCredentials(external_uid_header="fb-h"))
        orphan = await sessions.resolve(
            SessionCredentials(external_uid_header="fb-orphan", email_header="o@example.com")
        )

        assert by_id.user.id == user.id
        assert by_uid.user.id == user.id
        assert orphan == FirebaseOnly(uid="fb-orphan", email="o@example.com")
