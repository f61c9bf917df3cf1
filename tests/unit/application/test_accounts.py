"""
Unit tests for account use cases: registration, login (with and without the
email second factor), two-factor toggling and password reset.
"""

import pytest

from app.application.usecases.accounts import (
    ConfirmTwoFactorChangeUseCase,
    ForgotPasswordUseCase,
    LoginUseCase,
    RegisterUserInput,
    RegisterUserUseCase,
    RequestTwoFactorCodeUseCase,
    ResendLoginCodeUseCase,
    ResetPasswordUseCase,
    UpdateProfileUseCase,
    VerifyLoginCodeUseCase,
    VerifyResetCodeUseCase,
)
from app.application.usecases.results import UseCaseErrorCode
from app.domain.entities import CodePurpose
from app.domain.results import DOCUMENT, IDENTITY_PROVIDER, RELATIONAL, StoreOutcome
from app.domain.value_objects import ExternalIdentity
from app.identity.auth_users import verify_password
from app.identity.users import UserRole

pytestmark = pytest.mark.unit


def _code_in(mailbox, email: str) -> str:
    body = mailbox.last_to(email).body
    return body.split("code is: ", 1)[1][:6]


class TestRegister:
    @pytest.mark.asyncio
    async def test_creates_plain_user(self, resolver, relational, identity_provider):
        use_case = RegisterUserUseCase(resolver, relational, identity_provider)

        result = await use_case.execute(
            RegisterUserInput(email=" New@Example.com ", username="newbie", password="long-enough")
        )

        assert result.ok
        assert result.value.email == "new@example.com"
        assert result.value.role == UserRole.USER
        assert verify_password("long-enough", result.value.password_hash)

    @pytest.mark.asyncio
    async def test_existing_email_is_conflict(self, resolver, relational, make_user):
        await make_user("dup@example.com")
        use_case = RegisterUserUseCase(resolver, relational)

        result = await use_case.execute(
            RegisterUserInput(email="DUP@example.com", username="other", password="long-enough")
        )

        assert result.error.code == UseCaseErrorCode.CONFLICT

    @pytest.mark.asyncio
    async def test_email_known_to_identity_provider_is_conflict(
        self, resolver, relational, identity_provider
    ):
        identity_provider.register("t", ExternalIdentity(uid="fb-1", email="ext@example.com"))
        use_case = RegisterUserUseCase(resolver, relational, identity_provider)

        result = await use_case.execute(
            RegisterUserInput(email="ext@example.com", username="ext", password="long-enough")
        )

        assert result.error.code == UseCaseErrorCode.CONFLICT

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,username,password",
        [("no-at-sign", "user", "long-enough"), ("a@b.c", "ab", "long-enough"), ("a@b.c", "user", "short")],
    )
    async def test_invalid_input(self, resolver, relational, email, username, password):
        use_case = RegisterUserUseCase(resolver, relational)

        result = await use_case.execute(RegisterUserInput(email, username, password))

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR


class TestLogin:
    @pytest.mark.asyncio
    async def test_password_login(self, resolver, codes, make_user):
        user = await make_user("login@example.com")

        result = await LoginUseCase(resolver, codes).execute("LOGIN@example.com", "password123")

        assert result.value.user.id == user.id
        assert not result.value.requires_two_factor

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, resolver, codes, make_user):
        await make_user("login@example.com")
        use_case = LoginUseCase(resolver, codes)

        wrong = await use_case.execute("login@example.com", "nope")
        unknown = await use_case.execute("ghost@example.com", "password123")

        assert wrong.error == unknown.error
        assert wrong.error.code == UseCaseErrorCode.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_two_factor_login(self, resolver, relational, codes, mailbox, make_user):
        user = await make_user("twofa@example.com")
        await relational.update_user(user.id, {"two_factor_enabled": True})

        first = await LoginUseCase(resolver, codes).execute("twofa@example.com", "password123")
        assert first.value.requires_two_factor

        code = _code_in(mailbox, "twofa@example.com")
        verified = await VerifyLoginCodeUseCase(resolver, codes).execute(str(user.id), code)
        replay = await VerifyLoginCodeUseCase(resolver, codes).execute(str(user.id), code)

        assert verified.value.id == user.id
        assert replay.error.code == UseCaseErrorCode.INVALID_OR_EXPIRED_CODE

    @pytest.mark.asyncio
    async def test_resend_is_silent_for_unknown_owner(self, resolver, codes, mailbox):
        result = await ResendLoginCodeUseCase(resolver, codes).execute("ghost@example.com")

        assert result.ok
        assert mailbox.sent == []


class TestTwoFactorToggle:
    @pytest.mark.asyncio
    async def test_enable_with_code_at_minute_nine(
        self, codes, synchronizer, clock, mailbox, relational, document, make_user
    ):
        user = await make_user("toggle@example.com", external_uid="fb-toggle")
        assert (await RequestTwoFactorCodeUseCase(codes).execute(user, enable=True)).ok
        code = _code_in(mailbox, "toggle@example.com")

        clock.advance(minutes=9)
        result = await ConfirmTwoFactorChangeUseCase(codes, synchronizer).execute(
            user, code, enable=True
        )

        assert result.value.per_store == {
            RELATIONAL: StoreOutcome.SUCCEEDED,
            DOCUMENT: StoreOutcome.SUCCEEDED,
        }
        assert (await relational.get_user_by_id(user.id)).two_factor_enabled
        assert (await document.get_profile("fb-toggle")).two_factor_enabled

    @pytest.mark.asyncio
    async def test_expired_code_changes_nothing(
        self, codes, synchronizer, clock, mailbox, relational, make_user
    ):
        user = await make_user("late@example.com")
        await RequestTwoFactorCodeUseCase(codes).execute(user, enable=True)
        code = _code_in(mailbox, "late@example.com")

        clock.advance(minutes=11)
        result = await ConfirmTwoFactorChangeUseCase(codes, synchronizer).execute(
            user, code, enable=True
        )

        assert result.error.code == UseCaseErrorCode.INVALID_OR_EXPIRED_CODE
        assert not (await relational.get_user_by_id(user.id)).two_factor_enabled

    @pytest.mark.asyncio
    async def test_request_rejects_no_op(self, codes, make_user):
        user = await make_user()

        result = await RequestTwoFactorCodeUseCase(codes).execute(user, enable=False)

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_setup_code_cannot_disable(self, codes, synchronizer, mailbox, make_user):
        user = await make_user("cross@example.com")
        await RequestTwoFactorCodeUseCase(codes).execute(user, enable=True)
        code = _code_in(mailbox, "cross@example.com")

        result = await ConfirmTwoFactorChangeUseCase(codes, synchronizer).execute(
            user, code, enable=False
        )

        assert result.error.code == UseCaseErrorCode.INVALID_OR_EXPIRED_CODE


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_full_flow(
        self, resolver, codes, synchronizer, mailbox, relational, identity_provider, make_user
    ):
        user = await make_user("reset@example.com", external_uid="fb-reset")

        assert (await ForgotPasswordUseCase(resolver, codes).execute("Reset@example.com")).ok
        code = _code_in(mailbox, "reset@example.com")
        token = await VerifyResetCodeUseCase(resolver, codes).execute("reset@example.com", code)
        result = await ResetPasswordUseCase(resolver, synchronizer).execute(
            token.value, "brand-new-password"
        )
        reuse = await ResetPasswordUseCase(resolver, synchronizer).execute(
            token.value, "another-password"
        )

        assert result.value.summary == "full"
        stored = await relational.get_user_by_id(user.id)
        assert verify_password("brand-new-password", stored.password_hash)
        assert identity_provider.passwords["fb-reset"] == "brand-new-password"
        assert reuse.error.code == UseCaseErrorCode.INVALID_OR_EXPIRED_CODE

    @pytest.mark.asyncio
    async def test_reset_requires_relational_hash_update(
        self, resolver, codes, synchronizer, mailbox, relational, identity_provider, make_user
    ):
        user = await make_user("half@example.com", external_uid="fb-half")
        await ForgotPasswordUseCase(resolver, codes).execute("half@example.com")
        code = _code_in(mailbox, "half@example.com")
        token = await VerifyResetCodeUseCase(resolver, codes).execute("half@example.com", code)
        relational.faults.fail("update_user")

        failed = await ResetPasswordUseCase(resolver, synchronizer).execute(
            token.value, "brand-new-password"
        )

        assert failed.error.code == UseCaseErrorCode.SYNC_FAILED
        assert not failed.value.succeeded(RELATIONAL)
        assert failed.value.succeeded(IDENTITY_PROVIDER)
        stored = await relational.get_user_by_id(user.id)
        assert verify_password("password123", stored.password_hash)

        relational.faults.heal()
        retried = await ResetPasswordUseCase(resolver, synchronizer).execute(
            token.value, "brand-new-password"
        )

        assert retried.ok
        stored = await relational.get_user_by_id(user.id)
        assert verify_password("brand-new-password", stored.password_hash)

    @pytest.mark.asyncio
    async def test_forgot_is_generic_for_unknown_email(self, resolver, codes, mailbox):
        result = await ForgotPasswordUseCase(resolver, codes).execute("ghost@example.com")

        assert result.ok
        assert mailbox.sent == []

    @pytest.mark.asyncio
    async def test_forgot_is_generic_when_delivery_fails(self, resolver, codes, mailbox, make_user):
        await make_user("down@example.com")
        mailbox.fail = True

        assert (await ForgotPasswordUseCase(resolver, codes).execute("down@example.com")).ok

    @pytest.mark.asyncio
    async def test_wrong_code_gives_no_token(self, resolver, codes, make_user):
        user = await make_user("wrong@example.com")
        await codes.issue(user, CodePurpose.PASSWORD_RESET)

        result = await VerifyResetCodeUseCase(resolver, codes).execute("wrong@example.com", "abcdef")

        assert result.error.code == UseCaseErrorCode.INVALID_OR_EXPIRED_CODE

    @pytest.mark.asyncio
    async def test_short_password_is_rejected(self, resolver, synchronizer):
        result = await ResetPasswordUseCase(resolver, synchronizer).execute("whatever", "short")

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR


class TestProfile:
    @pytest.mark.asyncio
    async def test_update_mirrors_document_profile(self, relational, document, make_user):
        user = await make_user(external_uid="fb-prof")

        result = await UpdateProfileUseCase(relational, document).execute(
            user, {"full_name": " Ana Gómez ", "phone": "123"}
        )

        assert result.value.full_name == "Ana Gómez"
        assert document.raw_profile("fb-prof")["display_name"] == "Ana Gómez"

    @pytest.mark.asyncio
    async def test_role_is_not_editable(self, relational, document, make_user):
        user = await make_user()

        result = await UpdateProfileUseCase(relational, document).execute(user, {"role": "admin"})

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_taken_username_is_conflict(self, relational, document, make_user):
        await make_user("a@example.com", username="alpha")
        user = await make_user("b@example.com", username="beta")

        result = await UpdateProfileUseCase(relational, document).execute(user, {"username": "alpha"})

        assert result.error.code == UseCaseErrorCode.CONFLICT
