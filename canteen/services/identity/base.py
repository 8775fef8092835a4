"""
Identity Service Abstract Base Class

Defines the interface for the identity collaborator: signing a user in,
resolving the current user from an access token, and signing out.

Implementations:
    - MockIdentityService: development and tests
    - SupabaseIdentityService: hosted auth REST API

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserIdentity:
    """A signed-in user as reported by the identity service."""
    id: str
    email: Optional[str] = None


@dataclass
class AuthResult:
    """
    Standardized result from a sign-in attempt.

    Attributes:
        success: Whether the credentials were accepted
        user: The signed-in user
        access_token: Token identifying the session at the identity service
        error_message: Error description if sign-in failed
        error_code: Machine-readable error code
    """
    success: bool
    user: Optional[UserIdentity] = None
    access_token: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None


class IdentityServiceError(Exception):
    """
    Raised when the identity service cannot be reached.

    Distinct from an invalid token, which is reported as ``None``.
    """

    def __init__(self, message: str, code: str = "transport_error"):
        super().__init__(message)
        self.message = message
        self.code = code


class BaseIdentityService(ABC):
    """Abstract base class for identity services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Exchange email and password for an access token."""
        pass

    @abstractmethod
    async def get_user(self, access_token: str) -> Optional[UserIdentity]:
        """
        Return the user owning the token, or None if it is not valid.

        Raises:
            IdentityServiceError: If the service could not be asked
        """
        pass

    @abstractmethod
    async def sign_out(self, access_token: str) -> bool:
        """Revoke the token. Returns True if the service confirmed it."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass

    async def close(self) -> None:
        """Release network resources held by the service."""
        return None
