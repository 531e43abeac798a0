"""
Discory Backend — Auth Service
===============================

What:  Registration, login and bearer-token issuance/verification.
How:   bcrypt for password hashes, PyJWT (HS256) for tokens. Tokens carry
       `userId`, `email`, `iat` and `exp` claims.
Who:   Called by the auth routes, the `get_current_account_id` dependency
       and the realtime connect handler.

Token lifecycle:
    login/register ──▶ create_token() ──▶ client stores it
    every request  ──▶ decode_token()  ──▶ account id or AuthenticationError
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from discory.config import settings
from discory.exceptions import AuthenticationError, ConflictError, ValidationError
from discory.models.account import Account
from discory.schemas.account import AuthResponse, AuthUser, TokenPayload

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of the password
BCRYPT_MAX_BYTES = 72


class AuthService:
    """Password hashing, JWT handling and the register/login flows."""

    # ══════════════════════════════════════════════════════════════════════
    # Passwords
    # ══════════════════════════════════════════════════════════════════════

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            logger.warning("Stored password hash could not be parsed")
            return False

    # ══════════════════════════════════════════════════════════════════════
    # Tokens
    # ══════════════════════════════════════════════════════════════════════

    def create_token(self, account_id: uuid.UUID, email: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "userId": str(account_id),
            "email": email,
            "iat": now,
            "exp": now + timedelta(days=settings.jwt_expires_days),
        }
        return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    def decode_token(self, token: str) -> TokenPayload:
        """
        Verify signature and expiry, return the token's account id.

        Raises:
            AuthenticationError: expired, tampered, malformed, or missing the
                `userId` claim.
        """
        try:
            claims = jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"require": ["exp", "userId"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected bearer token: %s", e)
            raise AuthenticationError("Invalid token")

        try:
            account_id = uuid.UUID(str(claims["userId"]))
        except ValueError:
            raise AuthenticationError("Invalid token")

        return TokenPayload(account_id=account_id, email=claims.get("email", ""), claims=claims)

    # ══════════════════════════════════════════════════════════════════════
    # Flows
    # ══════════════════════════════════════════════════════════════════════

    async def register(
        self,
        db: AsyncSession,
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
    ) -> AuthResponse:
        """
        Create a public account and log it in.

        Raises:
            ValidationError: a field is missing or the password is too long
            ConflictError: email or username already taken
        """
        email = (email or "").strip().lower()
        username = (username or "").strip()
        if not email or not username or not password:
            raise ValidationError("Email, username and password are required")
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(
                f"Password must be at most {BCRYPT_MAX_BYTES} bytes", field="password"
            )

        existing = await db.execute(
            select(Account.id).where(or_(Account.email == email, Account.username == username))
        )
        if existing.first() is not None:
            raise ConflictError("User already exists")

        account = Account(
            email=email,
            username=username,
            password_hash=self.hash_password(password),
            is_public=True,
        )
        db.add(account)
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent registration
            raise ConflictError("User already exists") from e

        logger.info("Account registered: %s (%s)", account.username, account.id)
        return self._auth_response(account)

    async def login(
        self, db: AsyncSession, email: Optional[str], password: Optional[str]
    ) -> AuthResponse:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")

        result = await db.execute(select(Account).where(Account.email == email))
        account = result.scalar_one_or_none()
        if account is None or not self.verify_password(password, account.password_hash):
            raise AuthenticationError("Invalid credentials")

        logger.info("Account logged in: %s", account.id)
        return self._auth_response(account)

    def _auth_response(self, account: Account) -> AuthResponse:
        return AuthResponse(
            user=AuthUser(
                id=account.id,
                email=account.email,
                username=account.username,
                is_public=account.is_public,
                profile_picture=account.profile_picture,
                bio=account.bio,
            ),
            token=self.create_token(account.id, account.email),
        )


# Module-level singleton
auth_service = AuthService()
