"""
Hosted Identity Service Implementation

Talks to the hosted project's auth REST API (GoTrue) with httpx.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - SUPABASE_URL: project base URL
    - SUPABASE_ANON_KEY: public API key, sent as the `apikey` header

Endpoints used:
    - POST /auth/v1/token?grant_type=password   sign in
    - GET  /auth/v1/user                         resolve token
    - POST /auth/v1/logout                       revoke token
    - GET  /auth/v1/health                       health check

Version: 1.0.0
"""

import logging
from typing import Any, Optional

import httpx

from canteen.core.config import get_settings
from canteen.services.identity.base import (
    AuthResult,
    BaseIdentityService,
    IdentityServiceError,
    UserIdentity,
)

logger = logging.getLogger(__name__)


class SupabaseIdentityService(BaseIdentityService):
    """
    Identity service backed by the hosted auth API.

    Example:
        >>> service = SupabaseIdentityService()
        >>> result = await service.sign_in("asha@example.com", "secret123")
        >>> if result.success:
        ...     print(result.user.id)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client from settings.

        Args:
            url: Project base URL (defaults to SUPABASE_URL)
            anon_key: Public API key (defaults to SUPABASE_ANON_KEY)
            transport: Custom httpx transport

        Raises:
            ValueError: If the URL or key is not configured
        """
        settings = get_settings()
        url = url or settings.supabase_url
        anon_key = anon_key or settings.supabase_anon_key

        if not url or not anon_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY are required outside development mode. "
                "Set them in your .env file or environment variables."
            )

        self._client = httpx.AsyncClient(
            base_url=url.rstrip("/"),
            headers={"apikey": anon_key},
            timeout=settings.identity_timeout_seconds,
            transport=transport,
        )

        logger.info(f"SupabaseIdentityService initialized ({url})")

    @property
    def provider_name(self) -> str:
        return "supabase"

    @staticmethod
    def _bearer(access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    @staticmethod
    def _user_from(payload: dict[str, Any]) -> UserIdentity:
        return UserIdentity(id=payload["id"], email=payload.get("email"))

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return "Sign-in failed"
        return (
            body.get("error_description")
            or body.get("msg")
            or body.get("message")
            or "Sign-in failed"
        )

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            response = await self._client.post(
                "/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase: sign-in request failed - {e}")
            return AuthResult(
                success=False,
                error_message="Unable to reach the sign-in service",
                error_code="transport_error",
            )

        if response.status_code != 200:
            message = self._error_message(response)
            logger.warning(f"Supabase: sign-in rejected ({response.status_code}) - {message}")
            return AuthResult(
                success=False,
                error_message=message,
                error_code="invalid_credentials" if response.status_code == 400 else "auth_error",
            )

        try:
            body = response.json()
            user = self._user_from(body["user"])
            access_token = body["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Supabase: malformed sign-in response - {e!r}")
            return AuthResult(
                success=False,
                error_message="Sign-in failed",
                error_code="auth_error",
            )

        logger.info(f"Supabase: signed in {user.id}")
        return AuthResult(success=True, user=user, access_token=access_token)

    async def get_user(self, access_token: str) -> Optional[UserIdentity]:
        try:
            response = await self._client.get("/auth/v1/user", headers=self._bearer(access_token))
        except httpx.HTTPError as e:
            logger.error(f"Supabase: user lookup failed - {e}")
            raise IdentityServiceError("Unable to reach the sign-in service") from e

        # Only a rejected token means the session is over
        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            logger.error(f"Supabase: user lookup returned {response.status_code}")
            raise IdentityServiceError("The sign-in service is unavailable", code="auth_error")
        return self._user_from(response.json())

    async def sign_out(self, access_token: str) -> bool:
        try:
            response = await self._client.post("/auth/v1/logout", headers=self._bearer(access_token))
        except httpx.HTTPError as e:
            logger.error(f"Supabase: sign-out request failed - {e}")
            return False

        return response.status_code in (200, 204)

    async def health_check(self) -> bool:
        try:
            response = await self._client.get("/auth/v1/health")
        except httpx.HTTPError as e:
            logger.error(f"Supabase: health check failed - {e}")
            return False
        return response.status_code == 200

    async def close(self) -> None:
        await self._client.aclose()
