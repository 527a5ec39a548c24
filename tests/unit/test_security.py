"""
Unit tests for password hashing and access tokens.
"""
from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from copymode.core.config import settings
from copymode.core.security import create_access_token, get_password_hash, verify_password
from copymode.middleware.auth import token_auth


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = get_password_hash("s3cret!")

        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_does_not_verify(self):
        assert not verify_password("s3cret!", "not-a-bcrypt-hash")
        assert not verify_password("s3cret!", "")


class TestAccessTokens:

    def test_token_round_trip(self):
        token = create_access_token("user-1", extra_claims={"role": "admin"})

        payload = token_auth.verify_token(token)

        assert payload["sub"] == "user-1"
        assert payload["role"] == "admin"

    def test_expired_token_rejected(self):
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-10))

        with pytest.raises(HTTPException) as exc_info:
            token_auth.verify_token(token)

        assert exc_info.value.status_code == 401

    def test_wrong_signature_rejected(self):
        token = jwt.encode({"sub": "user-1"}, "another-secret", algorithm=settings.ALGORITHM)

        with pytest.raises(HTTPException) as exc_info:
            token_auth.verify_token(token)

        assert exc_info.value.status_code == 401

    def test_missing_subject_rejected(self):
        token = jwt.encode({"role": "admin"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

        with pytest.raises(HTTPException) as exc_info:
            token_auth.verify_token(token)

        assert exc_info.value.status_code == 401
