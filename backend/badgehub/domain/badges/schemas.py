"""Pydantic response models for the badge endpoints."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BadgeDocument(BaseModel):
    """Stored badge record. Unknown fields such as ``dateAccepted`` pass through."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    issuer: str
    issuerChain: str
    recipients: List[str]
    recipientsChains: List[str]
    description: str = ""
    imageUrl: str
    externalUrl: str = ""
    backgroundColor: str
    validDates: bool
    validDateStart: int
    validDateEnd: int
    dateCreated: int
    isVisible: bool = True
    attributes: str = "{}"


class BadgeList(BaseModel):
    badges: List[BadgeDocument] = Field(default_factory=list)


class FeeQuote(BaseModel):
    TransactionHex: str
    amountNanos: int


class IssuanceError(BaseModel):
    error: str
    reason: str
    badge_id: Optional[str] = None
    request_id: Optional[str] = None


class GeneralMessage(BaseModel):
    general: str
    details: Optional[Any] = None
