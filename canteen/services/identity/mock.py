"""
Mock Identity Service Implementation

Accepts any well-formed email with a password of at least six characters.
User ids are derived from the email, so the same shopper keeps the same id
(and order history) across sign-ins.
"""

import re
import uuid
import logging
from typing import Optional

from canteen.services.identity.base import (
    AuthResult,
    BaseIdentityService,
    UserIdentity,
)

logger = logging.getLogger(__name__)

_USER_NAMESPACE = uuid.UUID("5e0c2f8a-7b1d-4c3e-9f6a-2d8b1a4c7e35")
_EMAIL_RE = re.compile(r"^[\w\.\+-]+@[\w\.-]+\.\w+$")

MIN_PASSWORD_LENGTH = 6


class MockIdentityService(BaseIdentityService):
    """In-process identity service with opaque random tokens."""

    def __init__(self):
        self._tokens: dict[str, UserIdentity] = {}
        logger.info("MockIdentityService initialized")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def sign_in(self, email: str, password: str) -> AuthResult:
        email = email.strip().lower()

        if not _EMAIL_RE.match(email) or len(password) < MIN_PASSWORD_LENGTH:
            logger.debug(f"Mock: rejected sign-in for {email!r}")
            return AuthResult(
                success=False,
                error_message="Invalid login credentials",
                error_code="invalid_credentials",
            )

        user = UserIdentity(id=str(uuid.uuid5(_USER_NAMESPACE, email)), email=email)
        token = f"mock_{uuid.uuid4().hex}"
        self._tokens[token] = user

        logger.info(f"Mock: signed in {user.id}")
        return AuthResult(success=True, user=user, access_token=token)

    async def get_user(self, access_token: str) -> Optional[UserIdentity]:
        return self._tokens.get(access_token)

    async def sign_out(self, access_token: str) -> bool:
        user = self._tokens.pop(access_token, None)
        if user:
            logger.info(f"Mock: signed out {user.id}")
        return user is not None

    async def health_check(self) -> bool:
        return True
