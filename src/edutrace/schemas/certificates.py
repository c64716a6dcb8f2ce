"""Certificate schemas."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from edutrace.schemas.content import Roadmap
from edutrace.validators import validate_uuid

CertificateType = Literal["completion", "achievement", "badge"]


class CertificateHolder(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None


class Certificate(BaseModel):
    """Issued certificate; ``verification_code`` is the public lookup key."""

    id: Optional[str] = None
    user_id: str
    roadmap_id: str
    certificate_type: CertificateType
    title: str
    description: Optional[str] = None
    issued_date: Optional[datetime] = None
    certificate_url: Optional[str] = None
    badge_image_url: Optional[str] = None
    verification_code: Optional[str] = None
    is_public: bool = False
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
    roadmap: Optional[Roadmap] = None
    profile: Optional[CertificateHolder] = None


class CertificateList(BaseModel):
    items: List[Certificate]


class CertificateCreate(BaseModel):
    """Certificate issue request; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    roadmap_id: StrictStr
    certificate_type: CertificateType
    title: StrictStr
    description: Optional[StrictStr] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("roadmap_id")
    @classmethod
    def _check_roadmap_id(cls, value: str) -> str:
        return validate_uuid(value.strip(), "roadmap_id")

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title is required and must be a non-empty string")
        return value

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None


class CertificateFilters(BaseModel):
    model_config = ConfigDict(extra="ignore")

    certificate_type: Optional[CertificateType] = None
    is_public: Optional[bool] = None
    roadmap_id: Optional[str] = None

    @field_validator("roadmap_id")
    @classmethod
    def _check_roadmap_id(cls, value: Optional[str]) -> Optional[str]:
        return validate_uuid(value, "roadmap_id") if value is not None else None
