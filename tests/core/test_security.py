"""
Unit tests for password hashing and token helpers.
"""

import jwt

from flight_connect.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    def test_verify_matching_password(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)

    def test_wrong_password(self):
        assert not verify_password("nope", hash_password("secret123"))

    def test_malformed_hash_does_not_raise(self):
        assert not verify_password("secret123", "not-a-bcrypt-hash")


class TestTokens:
    def test_access_token_round_trip_claims(self):
        token = create_access_token("user-1", {"role": "pilot"})

        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert payload["role"] == "pilot"

    def test_token_signed_with_other_key_is_rejected(self):
        token = jwt.encode({"sub": "user-1", "type": "access"}, "some-other-key", algorithm="HS256")
        assert decode_token(token) is None
