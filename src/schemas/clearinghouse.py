"""
Pydantic Schemas for Clearinghouse Configuration.
Verified: 2026-10-19
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.enums import ClearinghouseType, SubmissionFormat, SubmissionMethod


def _check_http_url(v: Optional[str]) -> Optional[str]:
    if v and not v.startswith(("http://", "https://")):
        raise ValueError("api_endpoint must start with http:// or https://")
    return v


class ClearinghouseConfigBase(BaseModel):
    """Shared clearinghouse configuration fields."""

    name: str = Field(..., min_length=1, max_length=255)
    clearinghouse_type: ClearinghouseType
    is_active: bool = True
    is_default: bool = False
    api_endpoint: Optional[str] = Field(None, max_length=500)
    sftp_host: Optional[str] = Field(None, max_length=255)
    sftp_port: Optional[int] = Field(None, ge=1, le=65535)
    sftp_username: Optional[str] = Field(None, max_length=100)
    sender_id: Optional[str] = Field(None, max_length=15, description="ISA06 interchange sender ID")
    receiver_id: Optional[str] = Field(None, max_length=15, description="ISA08 interchange receiver ID")
    trading_partner_id: Optional[str] = Field(None, max_length=50)
    submission_format: SubmissionFormat = SubmissionFormat.X12_837P
    submission_method: SubmissionMethod = SubmissionMethod.API
    batch_enabled: bool = True
    max_batch_size: int = Field(100, ge=1, le=5000)
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("api_endpoint")
    @classmethod
    def validate_api_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """API endpoints must be http(s) URLs."""
        return _check_http_url(v)


class ClearinghouseConfigCreate(ClearinghouseConfigBase):
    """Schema for creating a clearinghouse configuration."""

    api_key: Optional[str] = Field(None, max_length=500)


class ClearinghouseConfigUpdate(BaseModel):
    """Schema for updating a clearinghouse configuration (partial)."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    clearinghouse_type: Optional[ClearinghouseType] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    api_endpoint: Optional[str] = Field(None, max_length=500)
    api_key: Optional[str] = Field(None, max_length=500)
    sftp_host: Optional[str] = Field(None, max_length=255)
    sftp_port: Optional[int] = Field(None, ge=1, le=65535)
    sftp_username: Optional[str] = Field(None, max_length=100)
    sender_id: Optional[str] = Field(None, max_length=15)
    receiver_id: Optional[str] = Field(None, max_length=15)
    trading_partner_id: Optional[str] = Field(None, max_length=50)
    submission_format: Optional[SubmissionFormat] = None
    submission_method: Optional[SubmissionMethod] = None
    batch_enabled: Optional[bool] = None
    max_batch_size: Optional[int] = Field(None, ge=1, le=5000)
    settings: Optional[dict[str, Any]] = None

    @field_validator("api_endpoint")
    @classmethod
    def validate_api_endpoint(cls, v: Optional[str]) -> Optional[str]:
        return _check_http_url(v)


class ClearinghouseConfigResponse(ClearinghouseConfigBase):
    """Clearinghouse configuration as returned to callers (no credentials)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    created_at: datetime
    updated_at: datetime
