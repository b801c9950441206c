from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from clinic.core.security import (
    Role, TokenCodec, TokenError, TokenReason,
    get_password_hash, verify_password
)

SECRET = "unit-test-secret"


@pytest.fixture
def codec():
    return TokenCodec(SECRET, "HS256", timedelta(minutes=30))


def reason_of(codec, token, **kwargs):
    with pytest.raises(TokenError) as exc_info:
        codec.parse(token, **kwargs)
    return exc_info.value.reason


class TestTokenCodec:

    def test_round_trip(self, codec):
        """An issued token parses back to the same subject."""
        claims = codec.parse(codec.issue("doc@example.com"))

        assert claims.sub == "doc@example.com"
        assert claims.iat is not None
        assert claims.exp > claims.iat

    def test_expiry_uses_configured_lifetime(self, codec):
        issued_at = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)
        claims = codec.parse(codec.issue("a@example.com", now=issued_at), now=issued_at)

        assert claims.exp - claims.iat == 30 * 60
        assert codec.expires_in == 30 * 60

    @pytest.mark.parametrize("token", [None, "", "   "])
    def test_missing_token(self, codec, token):
        assert reason_of(codec, token) == TokenReason.MISSING_TOKEN

    @pytest.mark.parametrize("token", ["invalid_token", "not.a.token", "a.b", "...."])
    def test_malformed_token(self, codec, token):
        assert reason_of(codec, token) == TokenReason.MALFORMED

    def test_wrong_secret_is_invalid_signature(self, codec):
        forged = TokenCodec("another-secret", "HS256", timedelta(minutes=30)).issue("a@example.com")
        assert reason_of(codec, forged) == TokenReason.INVALID_SIGNATURE

    def test_tampered_payload_is_invalid_signature(self, codec):
        header, _, signature = codec.issue("a@example.com").split(".")
        other_payload = codec.issue("admin@example.com").split(".")[1]

        assert reason_of(codec, f"{header}.{other_payload}.{signature}") == TokenReason.INVALID_SIGNATURE

    def test_unsigned_token_is_rejected(self, codec):
        """Tokens using another algorithm, "none" included, are unsupported."""
        hs512 = jwt.encode({"sub": "a@example.com", "exp": 4102444800}, SECRET, algorithm="HS512")
        assert reason_of(codec, hs512) == TokenReason.MALFORMED

        header = jwt.get_unverified_header(codec.issue("a@example.com"))
        assert header["alg"] == "HS256"

    def test_expired_token(self, codec):
        token = codec.issue("a@example.com", expires_delta=timedelta(seconds=-1))
        assert reason_of(codec, token) == TokenReason.EXPIRED

    def test_expiry_at_verification_instant_is_expired(self, codec):
        issued_at = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)
        token = codec.issue("a@example.com", now=issued_at)

        assert reason_of(codec, token, now=issued_at + timedelta(minutes=30)) == TokenReason.EXPIRED
        assert codec.parse(token, now=issued_at + timedelta(minutes=29)).sub == "a@example.com"

    def test_signature_checked_before_expiry(self, codec):
        expired_forgery = TokenCodec("another-secret", "HS256", timedelta(minutes=30)).issue(
            "a@example.com", expires_delta=timedelta(hours=-1)
        )
        assert reason_of(codec, expired_forgery) == TokenReason.INVALID_SIGNATURE

    def test_missing_expiry_is_malformed(self, codec):
        token = jwt.encode({"sub": "a@example.com"}, SECRET, algorithm="HS256")
        assert reason_of(codec, token) == TokenReason.MALFORMED

    def test_non_numeric_expiry_is_malformed(self, codec):
        token = jwt.encode({"sub": "a@example.com", "exp": "tomorrow"}, SECRET, algorithm="HS256")
        assert reason_of(codec, token) == TokenReason.MALFORMED

    def test_codec_requires_secret(self):
        with pytest.raises(ValueError):
            TokenCodec("", "HS256", timedelta(minutes=30))


class TestRole:

    @pytest.mark.parametrize("value,expected", [
        ("admin", Role.ADMIN),
        ("Doctor", Role.DOCTOR),
        (" PATIENT ", Role.PATIENT),
        (Role.DOCTOR, Role.DOCTOR),
    ])
    def test_parse_known_roles(self, value, expected):
        assert Role.parse(value) is expected

    @pytest.mark.parametrize("value", ["nurse", "", "admins", None, 3])
    def test_parse_unknown_roles(self, value):
        assert Role.parse(value) is None


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = get_password_hash("secret123")

        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)
