"""
Tests for TokenService and LoginThrottle.
"""

import pytest

from photoframe.core.exceptions import (
    InvalidCredentialsError,
    TooManyLoginAttemptsError,
    UnauthorizedError,
)
from photoframe.domains.mutation.auth import LoginThrottle, TokenService


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens(clock):
    return TokenService("admin", "secret-pass", b"signing-key", ttl_seconds=60, clock=clock)


class TestTokenService:
    def test_login_returns_verifiable_token(self, tokens):
        token = tokens.login("admin", "secret-pass")

        assert tokens.verify_token(token) == "admin"
        assert tokens.verify_authorization_header(f"Bearer {token}") == "admin"

    @pytest.mark.parametrize(
        "username,password",
        [("admin", "wrong"), ("root", "secret-pass"), ("", ""), ("admin", "secret-pass ")],
    )
    def test_login_rejects_wrong_credentials(self, tokens, username, password):
        with pytest.raises(InvalidCredentialsError):
            tokens.login(username, password)

    def test_original_plaintext_token_is_not_accepted(self, tokens):
        with pytest.raises(UnauthorizedError):
            tokens.verify_authorization_header("Bearer admin:secret-pass")

    def test_tampered_payload_is_rejected(self, tokens):
        token = tokens.issue_token("admin")
        payload, signature = token.split(".")
        forged = payload[:-2] + ("AA" if payload[-2:] != "AA" else "BB")

        with pytest.raises(UnauthorizedError):
            tokens.verify_token(f"{forged}.{signature}")

    def test_token_signed_with_other_key_is_rejected(self, tokens, clock):
        other = TokenService("admin", "secret-pass", b"other-key", clock=clock)

        with pytest.raises(UnauthorizedError):
            tokens.verify_token(other.issue_token("admin"))

    def test_expired_token_is_rejected(self, tokens, clock):
        token = tokens.issue_token("admin")
        clock.now += 61

        with pytest.raises(UnauthorizedError, match="expired"):
            tokens.verify_token(token)

    @pytest.mark.parametrize(
        "header",
        [None, "", "Bearer", "Basic abc", "Bearer not-a-token", "Bearer a.b.c", "Bearer abc.é", "Bearer é.abc"],
    )
    def test_malformed_headers_are_rejected(self, tokens, header):
        with pytest.raises(UnauthorizedError):
            tokens.verify_authorization_header(header)


class TestLoginThrottle:
    def test_blocks_after_max_failures_and_recovers(self, clock):
        throttle = LoginThrottle(max_failures=3, window_seconds=60, clock=clock)

        for _ in range(3):
            throttle.check("10.0.0.1")
            throttle.record_failure("10.0.0.1")

        with pytest.raises(TooManyLoginAttemptsError) as exc_info:
            throttle.check("10.0.0.1")
        assert exc_info.value.retry_after_seconds > 0

        # Other clients are unaffected
        throttle.check("10.0.0.2")

        clock.now += 61
        throttle.check("10.0.0.1")

    def test_reset_clears_failures(self, clock):
        throttle = LoginThrottle(max_failures=2, window_seconds=60, clock=clock)
        throttle.record_failure("client")
        throttle.record_failure("client")

        throttle.reset("client")

        throttle.check("client")

    def test_clients_that_never_return_are_forgotten(self, clock):
        throttle = LoginThrottle(max_failures=3, window_seconds=60, clock=clock)
        for n in range(100):
            throttle.record_failure(f"10.0.1.{n}")

        clock.now += 61
        throttle.record_failure("10.0.2.1")

        assert list(throttle._failures) == ["10.0.2.1"]
