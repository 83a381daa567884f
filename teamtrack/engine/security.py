"""
TeamTrack Authentication — password hashing, bearer tokens, accounts.

Implements:
- hash_password / verify_password: bcrypt
- TokenService: Fernet tokens carrying {id, role} with a TTL
- AuthService: register, login, authenticate(token) → Actor,
  and seeding of the configured bootstrap accounts

The role granted at registration comes from the injected BootstrapConfig:
matching admin/manager credentials get the elevated role, everyone else is a
Member.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from typing import Optional, Tuple

import bcrypt
from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel, Field, ValidationError

from teamtrack.engine.config import BootstrapAccount, BootstrapConfig, SecurityConfig
from teamtrack.engine.context import Actor
from teamtrack.engine.errors import (
    TeamTrackAuthenticationError,
    TeamTrackConflictError,
    TeamTrackValidationError,
)
from teamtrack.engine.logging import log, log_record_operation, log_system_event
from teamtrack.models import Role, User
from teamtrack.store.base import Store

logger = logging.getLogger("teamtrack.engine.security")


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Verify a password against its bcrypt hash."""
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

class TokenService:
    """
    Issues and verifies bearer tokens.

    A token is a Fernet blob over ``{"id": ..., "role": ...}``; Fernet embeds
    the issue time, so expiry is checked against ``ttl`` on decrypt.
    """

    def __init__(self, secret: Optional[str] = None, ttl: int = 7 * 24 * 3600):
        if secret:
            derived = hashlib.sha256(secret.encode("utf-8")).digest()
            key = base64.urlsafe_b64encode(derived)
        else:
            logger.warning("No security.token_secret configured — tokens will not survive a restart")
            key = Fernet.generate_key()
        self._fernet = Fernet(key)
        self._ttl = ttl

    @classmethod
    def from_config(cls, config: SecurityConfig) -> "TokenService":
        return cls(secret=config.token_secret, ttl=config.token_ttl)

    def issue(self, user: User) -> str:
        payload = json.dumps({"id": user.id, "role": user.role.value}).encode("utf-8")
        return self._fernet.encrypt(payload).decode("utf-8")

    def verify(self, token: Optional[str]) -> Actor:
        """Return the Actor encoded in *token*; raise if missing, forged or expired."""
        if not token:
            raise TeamTrackAuthenticationError("No token, authorization denied")
        if token.startswith("Bearer "):
            token = token[len("Bearer "):]
        try:
            raw = self._fernet.decrypt(token.encode("utf-8"), ttl=self._ttl)
            claims = json.loads(raw)
            return Actor(id=claims["id"], role=Role(claims["role"]))
        except (InvalidToken, ValueError, KeyError, TypeError) as e:
            raise TeamTrackAuthenticationError("Token is not valid") from e


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

class Registration(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=1)


def _matches(account: Optional[BootstrapAccount], email: str, password: str) -> bool:
    if account is None:
        return False
    return account.email == email and hmac.compare_digest(account.password, password)


class AuthService:
    """Account registration, login and token authentication."""

    def __init__(
        self,
        store: Store,
        tokens: TokenService,
        bootstrap: Optional[BootstrapConfig] = None,
        bcrypt_rounds: int = 12,
    ):
        self._store = store
        self._tokens = tokens
        self._bootstrap = bootstrap or BootstrapConfig()
        self._rounds = bcrypt_rounds

    def role_for(self, email: str, password: str) -> Role:
        email = email.strip().lower()
        if _matches(self._bootstrap.admin, email, password):
            return Role.ADMIN
        if _matches(self._bootstrap.manager, email, password):
            return Role.MANAGER
        return Role.MEMBER

    def register(self, name: str, email: str, password: str) -> Tuple[User, str]:
        """
        Create a Member account (or Admin/Manager for bootstrap credentials).

        Returns:
            (user, token)

        Raises:
            TeamTrackValidationError on missing/invalid fields.
            TeamTrackConflictError if the email is already registered.
        """
        try:
            form = Registration(name=name, email=email.strip().lower(), password=password)
        except ValidationError as e:
            raise TeamTrackValidationError(
                "Please fill all the fields",
                validation_errors=e.errors(include_url=False),
            ) from e

        if self._store.find_user_by_email(form.email) is not None:
            raise TeamTrackConflictError("User already exists", email=form.email)

        user = User(
            name=form.name,
            email=form.email,
            role=self.role_for(form.email, form.password),
            password_hash=hash_password(form.password, self._rounds),
        )
        self._store.add_user(user)
        log(log_record_operation("create", "user", user.id, actor_id=user.id))
        logger.info("Registered %s as %s", user.email, user.role.value)
        return user, self._tokens.issue(user)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        if not email or not password:
            raise TeamTrackValidationError("Please fill all the fields")
        user = self._store.find_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise TeamTrackAuthenticationError("Invalid credentials", email=email.strip().lower())
        return user, self._tokens.issue(user)

    def authenticate(self, token: Optional[str]) -> Actor:
        """
        Resolve a bearer token to an Actor.

        The role in the token is trusted as issued; a user deleted since then
        is rejected.
        """
        actor = self._tokens.verify(token)
        if self._store.find_user(actor.id) is None:
            raise TeamTrackAuthenticationError("Token is not valid", actor_id=actor.id)
        return actor

    def seed_bootstrap_accounts(self) -> int:
        """Create the configured admin/manager accounts if missing. Returns count created."""
        created = 0
        for account, role in (
            (self._bootstrap.admin, Role.ADMIN),
            (self._bootstrap.manager, Role.MANAGER),
        ):
            if account is None or self._store.find_user_by_email(account.email) is not None:
                continue
            user = User(
                name=account.name,
                email=account.email,
                role=role,
                password_hash=hash_password(account.password, self._rounds),
            )
            self._store.add_user(user)
            created += 1
            log(log_system_event("bootstrap_account_created", details={"email": user.email, "role": role.value}))
            logger.info("Seeded %s account %s", role.value, user.email)
        return created
