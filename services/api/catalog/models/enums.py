"""Enum definitions shared by models, schemas and services."""

import enum


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    FLAGGED = "flagged"


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    REJECTED = "rejected"
    DUPLICATE = "duplicate"


class Tier(str, enum.Enum):
    """Contributor tier, lowest first."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values (lowercase) rather than member names."""
    return [member.value for member in enum_cls]
