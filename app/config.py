from typing import Dict, List, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domain.entities.environment import Environment, EnvironmentName, PromotionPolicy
from app.domain.errors import ConfigurationError


class Settings(BaseSettings):
    APP_NAME: str = "deploy-promotion-controller"
    LOG_LEVEL: str = Field("INFO", alias="LOG_LEVEL")

    # Staging target
    STAGING_TARGET_HOST: str = Field("", alias="STAGING_TARGET_HOST")
    STAGING_BASTION_HOST: Optional[str] = Field(None, alias="STAGING_BASTION_HOST")
    STAGING_HEALTH_URL: str = Field("", alias="STAGING_HEALTH_URL")
    STAGING_SERVICE_NAME: str = Field("app", alias="STAGING_SERVICE_NAME")

    # Production target
    PRODUCTION_TARGET_HOST: str = Field("", alias="PRODUCTION_TARGET_HOST")
    PRODUCTION_BASTION_HOST: Optional[str] = Field(None, alias="PRODUCTION_BASTION_HOST")
    PRODUCTION_HEALTH_URL: str = Field("", alias="PRODUCTION_HEALTH_URL")
    PRODUCTION_SERVICE_NAME: str = Field("app", alias="PRODUCTION_SERVICE_NAME")

    # Verification and approval timing
    VERIFY_MAX_ATTEMPTS: int = Field(3, alias="VERIFY_MAX_ATTEMPTS")
    VERIFY_INTERVAL_SECONDS: float = Field(30.0, alias="VERIFY_INTERVAL_SECONDS")
    PROBE_TIMEOUT_SECONDS: float = Field(10.0, alias="PROBE_TIMEOUT_SECONDS")
    APPROVAL_TIMEOUT_MINUTES: float = Field(10.0, alias="APPROVAL_TIMEOUT_MINUTES")

    # Remote execution
    ANSIBLE_PLAYBOOK_BIN: str = Field("ansible-playbook", alias="ANSIBLE_PLAYBOOK_BIN")
    ANSIBLE_INVENTORY: str = Field("ansible/inventory.ini", alias="ANSIBLE_INVENTORY")
    ANSIBLE_PLAYBOOK: str = Field("ansible/deploy.yml", alias="ANSIBLE_PLAYBOOK")
    SSH_BIN: str = Field("ssh", alias="SSH_BIN")
    SSH_USER: Optional[str] = Field(None, alias="SSH_USER")
    CONTAINER_ENGINE: str = Field("docker", alias="CONTAINER_ENGINE")

    # Chat notifications
    SLACK_WEBHOOK_URL: Optional[str] = Field(None, alias="SLACK_WEBHOOK_URL")
    SLACK_CHANNEL: str = Field("#deployments", alias="SLACK_CHANNEL")
    NOTIFY_TIMEOUT_SECONDS: float = Field(5.0, alias="NOTIFY_TIMEOUT_SECONDS")

    # Defaults for runs that do not name their job/build
    JOB_NAME: str = Field("deploy-promotion", alias="JOB_NAME")
    BUILD_ID: str = Field("local", alias="BUILD_ID")

    # Descope - optional for development
    DESCOPE_PROJECT_ID: Optional[str] = Field(None, alias="DESCOPE_PROJECT_ID")
    AUTH_ALLOW_ANONYMOUS: bool = Field(False, alias="AUTH_ALLOW_ANONYMOUS")

    # Available permissions in the system
    AVAILABLE_PERMISSIONS: List[str] = [
        "read_runs",
        "deploy_staging",
        "deploy_production",
        "approve_production",
    ]

    # Role to permission mapping, used when the token carries roles only
    ROLE_PERMISSIONS: Dict[str, List[str]] = {
        "Observer": ["read_runs"],
        "developer": ["read_runs", "deploy_staging"],
        "Release_manager": ["read_runs", "deploy_staging", "deploy_production", "approve_production"],
    }

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True, extra="ignore")

    @property
    def available_roles(self) -> List[str]:
        return list(self.ROLE_PERMISSIONS)

    def environment(self, name: EnvironmentName) -> Environment:
        """Build the immutable Environment record for ``name``."""
        prefix = EnvironmentName(name).value.upper()
        return Environment(
            name=name,
            target_host=getattr(self, f"{prefix}_TARGET_HOST"),
            bastion_host=getattr(self, f"{prefix}_BASTION_HOST"),
            health_url=getattr(self, f"{prefix}_HEALTH_URL"),
            service_name=getattr(self, f"{prefix}_SERVICE_NAME"),
        )

    def environments(self) -> Dict[EnvironmentName, Environment]:
        """
        Environment records for both tiers, read from the current settings.

        Raises:
            ConfigurationError: If an environment cannot be built, e.g. it has
                no target host
        """
        records = {}
        for name in EnvironmentName:
            try:
                records[name] = self.environment(name)
            except ValidationError as e:
                reason = "; ".join(error["msg"] for error in e.errors())
                raise ConfigurationError(
                    f"{name.value} environment is not configured: {reason}", environment=name.value
                ) from e
        return records

    def promotion_policy(self) -> PromotionPolicy:
        return PromotionPolicy(
            max_attempts=self.VERIFY_MAX_ATTEMPTS,
            interval_seconds=self.VERIFY_INTERVAL_SECONDS,
            probe_timeout_seconds=self.PROBE_TIMEOUT_SECONDS,
            approval_timeout_seconds=self.APPROVAL_TIMEOUT_MINUTES * 60,
        )


settings = Settings()
