"""Pydantic schemas for API request/response validation."""

from catalog.schemas.common import ErrorDetail, ErrorResponse
from catalog.schemas.products import (
    AutocompleteResponse,
    FacetsResponse,
    FacetValue,
    ProductOut,
    ProductSearchResponse,
)
from catalog.schemas.submissions import (
    PossibleDuplicate,
    RewardOut,
    SubmissionCreate,
    SubmissionCreateResponse,
    SubmissionListResponse,
    SubmissionOut,
    TierStateOut,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "AutocompleteResponse",
    "FacetsResponse",
    "FacetValue",
    "ProductOut",
    "ProductSearchResponse",
    "PossibleDuplicate",
    "RewardOut",
    "SubmissionCreate",
    "SubmissionCreateResponse",
    "SubmissionListResponse",
    "SubmissionOut",
    "TierStateOut",
]
