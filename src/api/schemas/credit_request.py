"""Request schemas for Credit API

Pydantic models for validating incoming HTTP requests.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class TopupCheckoutRequestSchema(BaseModel):
    """
    Request schema for starting a top-up

    Used for POST /credits/topup/checkout endpoint.
    """

    organization_id: int = Field(..., gt=0, description="Organization to credit")

    user_id: str = Field(..., min_length=1, description="User paying for the top-up")

    amount: int = Field(..., gt=0, description="Amount to pay in VND (1 VND = 1 credit)")

    success_url: str = Field(..., min_length=1, description="Redirect after payment")

    cancel_url: str = Field(..., min_length=1, description="Redirect when the user abandons checkout")


class AdjustCreditsRequestSchema(BaseModel):
    """
    Request schema for a manual balance adjustment

    Used for POST /credits/{organization_id}/adjust endpoint.
    """

    amount: int = Field(..., description="Signed adjustment (positive credits, negative debits)")

    description: str = Field(..., min_length=1, max_length=500)

    performed_by: str = Field(..., min_length=1, description="Admin performing the adjustment")

    @field_validator("amount")
    @classmethod
    def amount_not_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("amount must not be zero")
        return v


class AlertSettingsRequestSchema(BaseModel):
    """
    Request schema for changing low-balance alert preferences

    Used for PATCH /credits/{organization_id}/settings endpoint.
    Omitted fields are left unchanged.
    """

    low_balance_alert_enabled: Optional[bool] = None

    low_balance_alert_threshold: Optional[int] = Field(default=None, ge=0)

    billing_email: Optional[str] = Field(default=None, min_length=3, max_length=255)
