"""
Unit tests for OneTimeCodeAuthenticator (email verification codes).
"""

import pytest

from app.crosscutting.exceptions import NotificationError
from app.domain.entities import CodePurpose
from app.identity.otp import CodeState, generate_code, owner_keys_for

pytestmark = pytest.mark.unit


def test_generated_codes_are_six_digits():
    for _ in range(50):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()


class TestIssue:
    @pytest.mark.asyncio
    async def test_code_is_delivered_and_keyed_by_all_identifiers(
        self, codes, mailbox, make_user
    ):
        user = await make_user("Keys@Example.com", external_uid="fb-keys")

        issued = await codes.issue(user, CodePurpose.LOGIN)

        assert issued.owner_keys == (str(user.id), "fb-keys", "keys@example.com")
        message = mailbox.last_to(user.email)
        assert message is not None
        assert issued.code in message.body
        assert "10 minutes" in message.body

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key_of", [
        lambda u: u.id,
        lambda u: str(u.id),
        lambda u: u.external_uid,
        lambda u: u.email.upper(),
    ])
    async def test_any_owner_key_finds_the_code(self, codes, make_user, key_of):
        user = await make_user(external_uid="fb-any")
        issued = await codes.issue(user, CodePurpose.SETUP)

        result = await codes.verify(key_of(user), issued.code, CodePurpose.SETUP)

        assert result.ok
        assert result.user_id == user.id

    @pytest.mark.asyncio
    async def test_reissue_supersedes_previous_code(self, codes, make_user):
        user = await make_user()
        first = await codes.issue(user, CodePurpose.LOGIN)
        second = await codes.issue(user, CodePurpose.LOGIN)

        if first.code != second.code:
            stale = await codes.verify(user.id, first.code, CodePurpose.LOGIN)
            assert stale.state == CodeState.INVALID
        assert (await codes.verify(user.id, second.code, CodePurpose.LOGIN)).ok

    @pytest.mark.asyncio
    async def test_delivery_failure_stores_nothing(self, codes, mailbox, code_store, make_user):
        user = await make_user()
        mailbox.fail = True

        with pytest.raises(NotificationError):
            await codes.issue(user, CodePurpose.LOGIN)

        assert await code_store.get(CodePurpose.LOGIN, str(user.id)) is None

    @pytest.mark.asyncio
    async def test_failed_reissue_keeps_previous_code(self, codes, mailbox, make_user):
        user = await make_user(external_uid="fb-keep")
        first = await codes.issue(user, CodePurpose.LOGIN)
        mailbox.fail = True

        with pytest.raises(NotificationError):
            await codes.issue(user, CodePurpose.LOGIN)

        assert (await codes.verify("fb-keep", first.code, CodePurpose.LOGIN)).ok

    @pytest.mark.asyncio
    async def test_purposes_are_isolated(self, codes, make_user):
        user = await make_user()
        issued = await codes.issue(user, CodePurpose.SETUP)

        result = await codes.verify(user.id, issued.code, CodePurpose.DISABLE)

        assert result.state == CodeState.MISSING


class TestVerify:
    @pytest.mark.asyncio
    async def test_code_is_single_use(self, codes, make_user):
        user = await make_user()
        issued = await codes.issue(user, CodePurpose.LOGIN)

        first = await codes.verify(user.email, issued.code, CodePurpose.LOGIN)
        second = await codes.verify(user.email, issued.code, CodePurpose.LOGIN)

        assert first.ok
        assert second.state == CodeState.USED

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_is_trimmed(self, codes, make_user):
        user = await make_user()
        issued = await codes.issue(user, CodePurpose.LOGIN)

        assert (await codes.verify(user.id, f"  {issued.code}\n", CodePurpose.LOGIN)).ok

    @pytest.mark.asyncio
    async def test_valid_one_second_before_expiry(self, codes, clock, make_user):
        user = await make_user()
        issued = await codes.issue(user, CodePurpose.LOGIN)

        clock.advance(minutes=9, seconds=59)

        assert (await codes.verify(user.id, issued.code, CodePurpose.LOGIN)).ok

    @pytest.mark.asyncio
    async def test_expired_one_second_after_even_if_correct(self, codes, clock, make_user):
        user = await make_user()
        issued = await codes.issue(user, CodePurpose.LOGIN)

        clock.advance(minutes=10, seconds=1)
        result = await codes.verify(user.id, issued.code, CodePurpose.LOGIN)

        assert result.state == CodeState.EXPIRED
        assert not result

    @pytest.mark.asyncio
    async def test_wrong_code_is_invalid(self, codes, make_user):
        user = await make_user()
        issued = await codes.issue(user, CodePurpose.LOGIN)
        wrong = "000000" if issued.code != "000000" else "111111"

        result = await codes.verify(user.id, wrong, CodePurpose.LOGIN)

        assert result.state == CodeState.INVALID
        assert result.user_id is None

    @pytest.mark.asyncio
    async def test_attempt_cap_exhausts_the_code(self, codes, make_user):
        user = await make_user()
        issued = await codes.issue(user, CodePurpose.LOGIN)
        wrong = "000000" if issued.code != "000000" else "111111"

        states = [
            (await codes.verify(user.id, wrong, CodePurpose.LOGIN)).state
            for _ in range(3)
        ]
        after = await codes.verify(user.id, issued.code, CodePurpose.LOGIN)

        assert states == [CodeState.INVALID, CodeState.INVALID, CodeState.EXHAUSTED]
        assert after.state == CodeState.EXHAUSTED

    @pytest.mark.asyncio
    async def test_unknown_owner_is_missing(self, codes):
        result = await codes.verify("ghost@example.com", "123456", CodePurpose.LOGIN)
        assert result.state == CodeState.MISSING


@pytest.mark.asyncio
async def test_owner_keys_skip_missing_uid(make_user):
    user = await make_user("plain@example.com")
    assert owner_keys_for(user) == (str(user.id), "plain@example.com")
