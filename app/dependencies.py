from __future__ import annotations
from typing import List, Optional
import logging

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from descope import REFRESH_SESSION_TOKEN_NAME

from app.config import Settings, settings
from app.schemas.auth import UserPrincipal
from app.infrastructure.auth.descope_client import descope_client, DescopeAuthError

# Service dependencies
from app.domain.services.deploy_service import DeploymentExecutor
from app.domain.services.health_service import HealthVerifier
from app.domain.services.notification_service import NotificationService
from app.domain.services.promotion_service import PromotionController, RunRegistry
from app.infrastructure.ansible.ansible_client import AnsibleClient
from app.infrastructure.container.container_client import ContainerStatusClient
from app.infrastructure.health.http_probe_client import HttpProbeClient
from app.infrastructure.notify.notifier_factory import NotifierFactory
from app.infrastructure.shell.command_runner import CommandRunner
from app.utils.clock import system_clock

logger = logging.getLogger(__name__)
_security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
) -> UserPrincipal:
    """
    Authenticate the caller with a Descope session token.

    Supports:
      - Authorization: Bearer <session_token>
      - Optional refresh token from cookies
    """
    if settings.AUTH_ALLOW_ANONYMOUS:
        logger.info("⚠️ Anonymous access is allowed - returning anonymous user")
        return UserPrincipal(
            user_id="anonymous",
            login_id="anonymous",
            name="Anonymous User",
            tenant="default",
            roles=["anonymous"],
            permissions=list(settings.AVAILABLE_PERMISSIONS),
        )

    session_token: Optional[str] = creds.credentials if creds and creds.credentials else None
    refresh_token: Optional[str] = request.cookies.get(REFRESH_SESSION_TOKEN_NAME)

    if not session_token:
        logger.error("❌ No session token found in Authorization header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required - no session token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not descope_client.is_configured():
        logger.error("❌ Descope client not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication service not configured",
        )

    try:
        jwt_response = descope_client.validate_session(session_token=session_token, refresh_token=refresh_token)
        user_principal = descope_client.extract_user_principal(jwt_response, session_token)
    except DescopeAuthError as e:
        logger.error(f"❌ Authentication failed: {e.detail}")
        raise HTTPException(
            status_code=e.status_code,
            detail=e.detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"✅ Authentication successful for user: {user_principal.user_id}")
    return user_principal


def require_permissions(required_permissions: List[str]):
    """
    Dependency factory for requiring any of ``required_permissions``.

    Args:
        required_permissions: Permissions of which the user must hold at least one

    Returns:
        Dependency function that validates permissions
    """
    def permission_dependency(user: UserPrincipal = Depends(get_current_user)) -> UserPrincipal:
        if not set(user.permissions).intersection(required_permissions):
            logger.warning(
                f"❌ Permission denied for user {user.user_id}: "
                f"required={required_permissions}, user_has={user.permissions}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permissions}",
            )
        return user

    return permission_dependency


require_read_runs = require_permissions(["read_runs", "deploy_staging", "deploy_production"])
require_start_run = require_permissions(["deploy_staging", "deploy_production"])
require_approver = require_permissions(["approve_production"])


def build_registry(config: Settings = settings) -> RunRegistry:
    """Wire the promotion controller from configuration."""
    runner = CommandRunner()
    notifications = NotificationService(NotifierFactory.create(config), channel=config.SLACK_CHANNEL)
    policy = config.promotion_policy()
    ansible = AnsibleClient(
        runner,
        inventory=config.ANSIBLE_INVENTORY,
        playbook=config.ANSIBLE_PLAYBOOK,
        binary=config.ANSIBLE_PLAYBOOK_BIN,
        ssh_user=config.SSH_USER,
    )
    containers = ContainerStatusClient(
        runner, ssh_bin=config.SSH_BIN, ssh_user=config.SSH_USER, engine=config.CONTAINER_ENGINE
    )
    controller = PromotionController(
        executor=DeploymentExecutor(ansible, notifications, clock=system_clock),
        verifier=HealthVerifier(
            containers,
            HttpProbeClient(),
            clock=system_clock,
            probe_timeout_seconds=policy.probe_timeout_seconds,
        ),
        notifications=notifications,
        load_environments=config.environments,
        policy=policy,
        clock=system_clock,
    )
    return RunRegistry(controller)


def get_run_registry(request: Request) -> RunRegistry:
    return request.app.state.registry
