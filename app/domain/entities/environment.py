from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EnvironmentName(str, Enum):
    STAGING = "staging"
    PRODUCTION = "production"


class Environment(BaseModel):
    """A deployment target. Loaded once per run and never mutated."""

    model_config = ConfigDict(frozen=True)

    name: EnvironmentName
    target_host: str
    bastion_host: Optional[str] = None
    health_url: str
    service_name: str

    @field_validator("target_host")
    @classmethod
    def _target_host_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("target_host must not be empty")
        return value.strip()

    @field_validator("bastion_host")
    @classmethod
    def _blank_bastion_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class PromotionPolicy(BaseModel):
    """Timing knobs shared by the verifier and the promotion gate."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(3, ge=1)
    interval_seconds: float = Field(30.0, ge=0)
    probe_timeout_seconds: float = Field(10.0, gt=0)
    approval_timeout_seconds: float = Field(600.0, gt=0)
