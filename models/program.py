"""
Request and response models for programs.

Stored program documents keep the field names the clients already read
(``creator_id``, ``deliveryType``, ``content_plan_id`` ...); these models
describe what the API accepts and the service maps them onto documents.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DeliveryType(str, Enum):
    """How a program is delivered to end users."""

    LOW_TICKET = "low_ticket"
    ONE_ON_ONE = "one_on_one"


class ProgramStatus(str, Enum):
    """Program lifecycle status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ProgramType(str, Enum):
    """Billing model; decides the access duration."""

    SUBSCRIPTION = "subscription"
    ONE_TIME = "one_time"


class ProgramCreate(BaseModel):
    """Request model for creating a program."""

    title: str = Field(default="", max_length=200)
    description: str = Field(default="", max_length=5000)
    discipline: str = ""
    program_type: ProgramType = ProgramType.ONE_TIME
    delivery_type: DeliveryType = DeliveryType.LOW_TICKET
    status: ProgramStatus = ProgramStatus.DRAFT
    price: Optional[int] = Field(None, ge=0)
    free_trial_active: bool = False
    free_trial_duration_days: int = Field(default=0, ge=0)
    duration: Optional[str] = None
    streak_enabled: bool = False
    minimum_sessions_per_week: int = Field(default=0, ge=0, le=7)
    weight_suggestions: bool = False
    available_libraries: List[str] = []
    content_plan_id: Optional[str] = None
    tutorials: Dict[str, Any] = {}
    image_url: Optional[str] = None
    creator_name: Optional[str] = None


class ProgramUpdate(BaseModel):
    """
    Request model for PATCH updates to a program.

    Unknown stored fields may be patched too (the dashboard edits many
    settings); ``published_version`` is always ignored, use release instead.
    """

    model_config = ConfigDict(extra="allow")

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[ProgramStatus] = None
    content_plan_id: Optional[str] = None
    image_url: Optional[str] = None


class ReleaseResponse(BaseModel):
    """Response model for releasing a program version."""

    published_version: str


class ProgramListResponse(BaseModel):
    """Response model for program listing."""

    programs: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int
