"""
Discory Backend — Auth Service Unit Tests
==========================================

What we test:
    ✅ Register lowercases the email and returns a verifiable token
    ✅ Missing fields and over-long passwords are rejected with 400
    ✅ Duplicate email or username is a 409
    ✅ Login with a wrong password is a 401
    ✅ Expired, tampered and claim-less tokens are rejected
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from discory.config import settings
from discory.exceptions import AuthenticationError, ConflictError, ValidationError
from discory.services.auth_service import auth_service


class TestPasswords:
    def test_hash_round_trip(self):
        hashed = auth_service.hash_password("s3cret")
        assert hashed != "s3cret"
        assert auth_service.verify_password("s3cret", hashed)
        assert not auth_service.verify_password("wrong", hashed)

    def test_malformed_hash_does_not_verify(self):
        assert auth_service.verify_password("s3cret", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_decode_returns_account_id(self):
        account_id = uuid.uuid4()
        token = auth_service.create_token(account_id, "a@example.com")

        payload = auth_service.decode_token(token)

        assert payload.account_id == account_id
        assert payload.email == "a@example.com"

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        token = jwt.encode(
            {"userId": str(uuid.uuid4()), "email": "x", "iat": past - timedelta(days=7), "exp": past},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError, match="Token has expired"):
            auth_service.decode_token(token)

    def test_wrong_signature(self):
        token = jwt.encode(
            {"userId": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            "another-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth_service.decode_token(token)

    def test_missing_user_claim(self):
        token = jwt.encode(
            {"email": "x", "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            auth_service.decode_token(token)

    def test_garbage(self):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth_service.decode_token("not.a.jwt")


class TestRegisterAndLogin:
    @pytest.mark.asyncio
    async def test_register_normalizes_email(self, db):
        result = await auth_service.register(db, "  Alice@Example.COM ", "alice", "pw123456")

        assert result.user.email == "alice@example.com"
        assert result.user.username == "alice"
        assert result.user.is_public is True
        assert auth_service.decode_token(result.token).account_id == result.user.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,username,password",
        [(None, "alice", "pw"), ("a@example.com", "", "pw"), ("a@example.com", "alice", None)],
    )
    async def test_register_missing_fields(self, db, email, username, password):
        with pytest.raises(ValidationError, match="Email, username and password are required"):
            await auth_service.register(db, email, username, password)

    @pytest.mark.asyncio
    async def test_register_rejects_long_password(self, db):
        with pytest.raises(ValidationError):
            await auth_service.register(db, "a@example.com", "alice", "x" * 73)

    @pytest.mark.asyncio
    async def test_register_duplicate(self, db):
        await auth_service.register(db, "a@example.com", "alice", "pw123456")

        with pytest.raises(ConflictError, match="User already exists"):
            await auth_service.register(db, "A@example.com", "someone-else", "pw123456")
        with pytest.raises(ConflictError):
            await auth_service.register(db, "b@example.com", "alice", "pw123456")

    @pytest.mark.asyncio
    async def test_login(self, db):
        await auth_service.register(db, "a@example.com", "alice", "pw123456")

        result = await auth_service.login(db, "A@EXAMPLE.com", "pw123456")
        assert result.user.username == "alice"

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await auth_service.login(db, "a@example.com", "wrong")
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await auth_service.login(db, "nobody@example.com", "pw123456")
        with pytest.raises(ValidationError):
            await auth_service.login(db, "", "pw123456")
