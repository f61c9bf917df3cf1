"""
Unit tests for RoleStateSynchronizer.

The synchronizer writes both stores concurrently and reports a per-store
outcome; it never raises on store failures.
"""

import pytest

from app.application.role_sync import SyncTarget
from app.domain.results import DOCUMENT, IDENTITY_PROVIDER, RELATIONAL, StoreOutcome
from app.identity.auth_users import verify_password
from app.identity.users import UserRole

pytestmark = pytest.mark.unit


class TestSyncRole:
    @pytest.mark.asyncio
    async def test_both_stores_updated(self, synchronizer, relational, document, make_user):
        user = await make_user(external_uid="fb-both")

        outcome = await synchronizer.sync_role(SyncTarget.of(user), UserRole.ADMIN)

        assert outcome.summary == "full"
        assert outcome.per_store == {
            RELATIONAL: StoreOutcome.SUCCEEDED,
            DOCUMENT: StoreOutcome.SUCCEEDED,
        }
        assert (await relational.get_user_by_id(user.id)).role == UserRole.ADMIN
        assert (await document.get_profile("fb-both")).role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_document_failure_is_partial_not_raised(
        self, synchronizer, relational, document, make_user
    ):
        user = await make_user(external_uid="fb-partial")
        document.faults.fail("merge_profile")

        outcome = await synchronizer.sync_role(SyncTarget.of(user), "admin")

        assert outcome.overall_success
        assert outcome.is_partial
        assert outcome.per_store[DOCUMENT] == StoreOutcome.FAILED
        assert DOCUMENT in outcome.errors
        assert (await relational.get_user_by_id(user.id)).role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_profile_only_user_is_materialized(self, synchronizer, relational, document):
        await document.merge_profile(
            "fb-orphan", {"email": "orphan@example.com", "username": "orphan"}
        )

        outcome = await synchronizer.sync_role(SyncTarget(external_uid="fb-orphan"), UserRole.ADMIN)

        assert outcome.summary == "full"
        created = await relational.get_user_by_uid("fb-orphan")
        assert created is not None
        assert created.email == "orphan@example.com"
        assert created.role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_profile_without_email_updates_document_only(
        self, synchronizer, relational, document
    ):
        await document.merge_profile("fb-noemail", {"username": "ghost"})

        outcome = await synchronizer.sync_role(SyncTarget(external_uid="fb-noemail"), UserRole.ADMIN)

        assert outcome.overall_success
        assert outcome.is_partial
        assert outcome.per_store[RELATIONAL] == StoreOutcome.FAILED
        assert outcome.per_store[DOCUMENT] == StoreOutcome.SUCCEEDED
        assert (await document.get_profile("fb-noemail")).role == UserRole.ADMIN
        assert await relational.count_users() == 0

    @pytest.mark.asyncio
    async def test_user_without_uid_skips_document(self, synchronizer, make_user):
        user = await make_user()

        outcome = await synchronizer.sync_role(SyncTarget.of(user), UserRole.ADMIN)

        assert outcome.per_store[DOCUMENT] == StoreOutcome.SKIPPED
        assert outcome.summary == "full"
        assert outcome.to_dict()["perStore"] == {RELATIONAL: True, DOCUMENT: False}

    @pytest.mark.asyncio
    async def test_both_down_reports_failure(self, synchronizer, relational, document, make_user):
        user = await make_user(external_uid="fb-down")
        relational.faults.fail()
        document.faults.fail()

        outcome = await synchronizer.sync_role(SyncTarget.of(user), UserRole.ADMIN)

        assert not outcome.overall_success
        assert outcome.summary == "failed"
        assert set(outcome.errors) == {RELATIONAL, DOCUMENT}

    @pytest.mark.asyncio
    async def test_slow_store_times_out_as_failure(self, synchronizer, document, make_user):
        user = await make_user(external_uid="fb-slow")
        document.faults.delay(1.0, "merge_profile")

        outcome = await synchronizer.sync_role(SyncTarget.of(user), UserRole.ADMIN)

        assert outcome.per_store[DOCUMENT] == StoreOutcome.FAILED
        assert outcome.errors[DOCUMENT] == "timeout"


class TestSyncState:
    @pytest.mark.asyncio
    async def test_only_syncable_fields_are_written(self, synchronizer, relational, document, make_user):
        user = await make_user(external_uid="fb-2fa")

        outcome = await synchronizer.sync_state(
            SyncTarget.of(user),
            {"two_factor_enabled": True, "email": "hijack@example.com"},
            operation="enable_2fa",
        )

        assert outcome.operation == "enable_2fa"
        stored = await relational.get_user_by_id(user.id)
        assert stored.two_factor_enabled is True
        assert stored.email == user.email
        assert document.raw_profile("fb-2fa") == {"two_factor_enabled": True}


class TestSyncPassword:
    @pytest.mark.asyncio
    async def test_hash_and_provider_password(self, synchronizer, relational, identity_provider, make_user):
        user = await make_user(external_uid="fb-pw")

        outcome = await synchronizer.sync_password(SyncTarget.of(user), "new-password-1")

        assert outcome.per_store == {
            RELATIONAL: StoreOutcome.SUCCEEDED,
            IDENTITY_PROVIDER: StoreOutcome.SUCCEEDED,
        }
        stored = await relational.get_user_by_id(user.id)
        assert verify_password("new-password-1", stored.password_hash)
        assert identity_provider.passwords["fb-pw"] == "new-password-1"

    @pytest.mark.asyncio
    async def test_provider_failure_is_partial(self, synchronizer, identity_provider, make_user):
        user = await make_user(external_uid="fb-pw2")
        identity_provider.fail_password_updates = True

        outcome = await synchronizer.sync_password(SyncTarget.of(user), "new-password-2")

        assert outcome.is_partial
        assert outcome.per_store[IDENTITY_PROVIDER] == StoreOutcome.FAILED

    @pytest.mark.asyncio
    async def test_password_never_materializes_a_user(self, synchronizer, relational):
        outcome = await synchronizer.sync_password(SyncTarget(user_id=42), "whatever-123")

        assert not outcome.overall_success
        assert await relational.count_users() == 0
