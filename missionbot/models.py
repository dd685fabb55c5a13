"""Pydantic models for Synack payloads."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Payout(BaseModel):
    """Mission reward, informational only."""
    model_config = ConfigDict(extra="ignore")

    amount: Optional[float] = None
    currency: Optional[str] = None


class Mission(BaseModel):
    """A claimable task scoped to an organization/listing/campaign triple."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    organization_uid: str = Field(..., alias="organizationUid")
    listing_uid: str = Field(..., alias="listingUid")
    campaign_uid: str = Field(..., alias="campaignUid")
    title: Optional[str] = None
    payout: Optional[Payout] = None

    def describe(self) -> str:
        """Short human label used in logs and notifications."""
        label = self.title or self.id
        if self.payout and self.payout.amount is not None:
            currency = self.payout.currency or "USD"
            return f"{label} ({self.payout.amount:g} {currency})"
        return label


class Target(BaseModel):
    """An organization-level listing the researcher is not enrolled in."""
    model_config = ConfigDict(extra="ignore")

    slug: str
    codename: Optional[str] = None
    name: Optional[str] = None

    def describe(self) -> str:
        if self.codename:
            return f"{self.codename} ({self.slug})"
        return self.slug
