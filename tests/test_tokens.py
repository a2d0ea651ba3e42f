"""
tests/test_tokens.py -- Unit tests for auth/tokens.py and BearerAuthenticator.

Coverage:
  - create_token / decode_token round trip and claim names
  - decode_token rejects a wrong secret and garbage input
  - BearerAuthenticator.extract: missing header, scheme case, whitespace,
    wrong secret, wrong scheme, empty token
  - IdentityClaim.from_payload type checks
  - bcrypt hash_password / verify_password
"""

from __future__ import annotations

from jose import jwt

from auth.dependencies import BearerAuthenticator
from auth.models import IdentityClaim
from auth.tokens import create_token, decode_token, hash_password, verify_password

SECRET = "s" * 32
OTHER_SECRET = "o" * 32


class TestTokenRoundTrip:
    def test_claims(self) -> None:
        payload = decode_token(create_token("u1", False, SECRET), SECRET)
        assert payload is not None
        assert payload["username"] == "u1"
        assert payload["isAdmin"] is False
        assert isinstance(payload["iat"], int)

    def test_admin_claim(self) -> None:
        payload = decode_token(create_token("boss", True, SECRET), SECRET)
        assert payload["isAdmin"] is True

    def test_no_expiry_claim(self) -> None:
        payload = decode_token(create_token("u1", False, SECRET), SECRET)
        assert "exp" not in payload

    def test_wrong_secret_returns_none(self) -> None:
        assert decode_token(create_token("u1", False, SECRET), OTHER_SECRET) is None

    def test_garbage_returns_none(self) -> None:
        assert decode_token("not.a.jwt", SECRET) is None


class TestBearerAuthenticator:
    def setup_method(self) -> None:
        self.authenticator = BearerAuthenticator(SECRET)
        self.token = create_token("u1", False, SECRET)

    def test_no_header(self) -> None:
        assert self.authenticator.extract(None) is None

    def test_empty_header(self) -> None:
        assert self.authenticator.extract("") is None

    def test_valid_header(self) -> None:
        identity = self.authenticator.extract(f"Bearer {self.token}")
        assert identity is not None
        assert identity.username == "u1"
        assert identity.is_admin is False
        assert identity.iat is not None

    def test_lowercase_scheme(self) -> None:
        identity = self.authenticator.extract(f"bearer {self.token}")
        assert identity is not None
        assert identity.username == "u1"

    def test_surrounding_whitespace(self) -> None:
        identity = self.authenticator.extract(f"  BEARER    {self.token}   ")
        assert identity is not None
        assert identity.username == "u1"

    def test_scheme_without_token(self) -> None:
        assert self.authenticator.extract("Bearer   ") is None

    def test_wrong_secret_is_anonymous(self) -> None:
        other = create_token("u1", True, OTHER_SECRET)
        assert self.authenticator.extract(f"Bearer {other}") is None

    def test_malformed_token_is_anonymous(self) -> None:
        assert self.authenticator.extract("Bearer abc.def.ghi") is None

    def test_other_scheme_is_anonymous(self) -> None:
        assert self.authenticator.extract(f"Basic {self.token}") is None

    def test_missing_admin_claim(self) -> None:
        token = jwt.encode({"username": "u1", "iat": 0}, SECRET, algorithm="HS256")
        identity = self.authenticator.extract(f"Bearer {token}")
        assert identity == IdentityClaim(username="u1", is_admin=None, iat=0)


class TestIdentityClaim:
    def test_non_bool_admin_claim_dropped(self) -> None:
        claim = IdentityClaim.from_payload({"username": "u1", "isAdmin": "true"})
        assert claim.is_admin is None

    def test_non_string_username_dropped(self) -> None:
        claim = IdentityClaim.from_payload({"username": 42, "isAdmin": True})
        assert claim.username is None
        assert claim.is_admin is True


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("password1")
        assert hashed != "password1"
        assert verify_password("password1", hashed)

    def test_wrong_password(self) -> None:
        assert not verify_password("nope", hash_password("password1"))

    def test_malformed_hash(self) -> None:
        assert not verify_password("password1", "not-a-bcrypt-hash")
