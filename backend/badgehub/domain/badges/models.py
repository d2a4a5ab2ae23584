"""Domain models for badge issuance."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from badgehub.settings import Settings

# Largest epoch-millis value a JS Date accepts; stands for "valid forever".
FOREVER_MS = 8_640_000_000_000_000
MAX_TITLE_LENGTH = 80
DEFAULT_BACKGROUND_COLOR = "#000000"
CHAIN_TICKER = "$CLOUT"

USER_SET_FIELDS = (
    "badgesIssued",
    "badgesReceived",
    "badgesListed",
    "badgesPending",
    "badgesAccepted",
    "issuedCollections",
    "receivedCollections",
)


def blank_user(**overrides: list[str]) -> dict[str, list[str]]:
    """Empty-set template for a lazily created user record."""
    user: dict[str, list[str]] = {name: [] for name in USER_SET_FIELDS}
    for key, value in overrides.items():
        user[key] = list(value)
    return user


def user_path(user_id: str) -> str:
    return f"users/{user_id}"


def badge_path(badge_id: str) -> str:
    return f"badges/{badge_id}"


@dataclass(frozen=True)
class IssuanceConfig:
    """External identities, rates and defaults the pipeline depends on."""

    free_tier_recipients: int = 25
    nanos_per_recipient: int = 5_000_000
    platform_public_key_hex: str = "02b6e2717127e11282ccdee91e176381a25f1114f2e21d994e14beda538e303698"
    platform_username: str = "BitBadges"
    attestation_public_key: str = "BC1YLgvPruTYF3R66H96g1nCq9jhewpH7k8iwjQr7WoLacby8tNZNan"
    min_fee_rate_nanos_per_kb: int = 1000
    default_image_url: str = (
        "https://images.bitclout.com/59638de19a21210d7ddd47ecec5ec041532930d5ec76b88b6ccebb14b2e6f571.webp"
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> "IssuanceConfig":
        return cls(
            free_tier_recipients=settings.free_tier_recipients,
            nanos_per_recipient=settings.nanos_per_recipient,
            platform_public_key_hex=settings.platform_public_key_hex.lower(),
            platform_username=settings.platform_username,
            attestation_public_key=settings.attestation_public_key,
            min_fee_rate_nanos_per_kb=settings.min_fee_rate_nanos_per_kb,
            default_image_url=settings.default_image_url,
        )


@dataclass
class BadgeDraft:
    """Validated badge fields before the content identifier is known."""

    title: str
    issuer: str
    recipients: list[str]
    description: str
    image_url: str
    external_url: str
    background_color: str
    valid_dates: bool
    valid_date_start: int
    valid_date_end: int
    date_created: int
    is_visible: bool = True
    attributes: str = "{}"
    issuer_chain: str = CHAIN_TICKER
    recipients_chains: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.recipients_chains:
            self.recipients_chains = [CHAIN_TICKER for _ in self.recipients]

    def to_document(self, badge_id: Optional[str] = None) -> dict[str, Any]:
        document: dict[str, Any] = {
            "title": self.title,
            "issuer": self.issuer,
            "issuerChain": self.issuer_chain,
            "recipients": list(self.recipients),
            "recipientsChains": list(self.recipients_chains),
            "description": self.description,
            "imageUrl": self.image_url,
            "externalUrl": self.external_url,
            "backgroundColor": self.background_color,
            "validDates": self.valid_dates,
            "validDateStart": self.valid_date_start,
            "validDateEnd": self.valid_date_end,
            "dateCreated": self.date_created,
            "isVisible": self.is_visible,
            "attributes": self.attributes,
        }
        if badge_id is not None:
            document["id"] = badge_id
        return document


@dataclass
class PublishedBadge:
    id: str
    draft: BadgeDraft
    paid: bool = False

    def to_document(self) -> dict[str, Any]:
        return self.draft.to_document(self.id)
