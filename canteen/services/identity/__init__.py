"""
Identity Service Factory

Returns the mock or hosted identity service based on ENV_MODE.
"""

import logging
from functools import lru_cache

from canteen.core.config import get_settings
from canteen.services.identity.base import (
    AuthResult,
    BaseIdentityService,
    IdentityServiceError,
    UserIdentity,
)
from canteen.services.identity.mock import MockIdentityService
from canteen.services.identity.supabase import SupabaseIdentityService

logger = logging.getLogger(__name__)


@lru_cache()
def get_identity_service() -> BaseIdentityService:
    """Get the configured identity service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Identity Service: Using MockIdentityService (development mode)")
        return MockIdentityService()
    else:
        logger.info(f"Identity Service: Using SupabaseIdentityService ({settings.env_mode.value} mode)")
        return SupabaseIdentityService()


def reset_identity_service() -> None:
    """Clear the cached service instance."""
    get_identity_service.cache_clear()


__all__ = [
    "get_identity_service",
    "reset_identity_service",
    "AuthResult",
    "BaseIdentityService",
    "IdentityServiceError",
    "UserIdentity",
    "MockIdentityService",
    "SupabaseIdentityService",
]
