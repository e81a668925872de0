from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from descope import AuthException, DescopeClient
from fastapi import HTTPException, status

from app.config import Settings, settings
from app.schemas.auth import UserPrincipal

logger = logging.getLogger(__name__)


class DescopeAuthError(HTTPException):
    def __init__(self, detail: str, status_code: int = status.HTTP_401_UNAUTHORIZED):
        super().__init__(status_code=status_code, detail=detail)


class DescopeAuthClient:
    """
    Descope session validation for operators and approvers.
    """

    def __init__(self, config: Settings = settings):
        """Initialize the Descope client with project configuration."""
        self.config = config
        if not config.DESCOPE_PROJECT_ID:
            logger.warning("⚠️ DESCOPE_PROJECT_ID not configured - authentication will be disabled")
            self.client = None
            return

        try:
            self.client = DescopeClient(project_id=config.DESCOPE_PROJECT_ID)
            logger.info(f"✅ Descope client initialized for project: {config.DESCOPE_PROJECT_ID}")
        except AuthException as error:
            logger.error(f"❌ Failed to initialize Descope client: {error}")
            self.client = None

    def is_configured(self) -> bool:
        """Check if Descope client is properly configured."""
        return self.client is not None

    def validate_session(self, session_token: str, refresh_token: Optional[str] = None) -> Dict[str, Any]:
        """
        Validate session token and refresh it if a refresh token is available.

        Args:
            session_token: The session token to validate
            refresh_token: Optional refresh token for automatic refresh

        Returns:
            JWT response with user claims and permissions

        Raises:
            DescopeAuthError: If validation fails
        """
        if not self.client:
            raise DescopeAuthError("Descope client not configured")

        try:
            if refresh_token:
                jwt_response = self.client.validate_and_refresh_session(
                    session_token=session_token,
                    refresh_token=refresh_token,
                )
            else:
                jwt_response = self.client.validate_session(session_token=session_token)
        except AuthException as e:
            logger.error(f"❌ Session validation failed: {e}")
            raise DescopeAuthError(f"Session validation error: {e}")

        logger.info("✅ Session validation successful")
        return jwt_response

    def extract_user_principal(self, jwt_response: Dict[str, Any], session_token: str) -> UserPrincipal:
        """
        Extract user principal from JWT response.

        Permissions come from the token itself; when it only carries roles
        they are derived through ``ROLE_PERMISSIONS``.
        """
        user_id = jwt_response.get("sub") or jwt_response.get("userId")
        login_id = jwt_response.get("loginId") or jwt_response.get("email")
        name = jwt_response.get("name")
        tenant = jwt_response.get("tenant") or jwt_response.get("tenantId")

        roles = self.get_matched_roles(jwt_response, self.config.available_roles)
        permissions = self.get_matched_permissions(jwt_response, self.config.AVAILABLE_PERMISSIONS)

        if not permissions and roles:
            logger.info(f"🔍 No direct permissions found, deriving from roles: {roles}")
            derived = set()
            for role in roles:
                derived.update(self.config.ROLE_PERMISSIONS.get(role, []))
            permissions = sorted(derived)

        logger.info(f"🔍 Matched roles: {roles}, permissions: {permissions}")
        return UserPrincipal(
            user_id=str(user_id) if user_id else "unknown",
            login_id=login_id or "unknown",
            email=jwt_response.get("email") or "",
            name=name or "User",
            tenant=tenant or "default",
            roles=roles,
            permissions=permissions,
            token=session_token,
            claims={k: str(v) for k, v in jwt_response.items() if isinstance(k, str)},
        )

    def get_matched_permissions(self, jwt_response: Dict[str, Any], permissions_to_match: List[str]) -> List[str]:
        if not self.client:
            return []
        return list(self.client.get_matched_permissions(jwt_response, permissions_to_match))

    def get_matched_roles(self, jwt_response: Dict[str, Any], roles_to_match: List[str]) -> List[str]:
        if not self.client:
            return []
        return list(self.client.get_matched_roles(jwt_response, roles_to_match))


# Global instance
descope_client = DescopeAuthClient()
