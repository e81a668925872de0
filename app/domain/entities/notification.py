from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    GOOD = "good"
    DANGER = "danger"
    WARNING = "warning"


class Notification(BaseModel):
    severity: Severity
    message: str
    channel: Optional[str] = None
    job_id: str
    build_id: str
    final: bool = False
    # Only set on the end-of-run payload
    duration_seconds: Optional[float] = None
    status: Optional[str] = None
    links: Dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
