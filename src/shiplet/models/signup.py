"""
Signup record models and validation.

- Two record kinds selected by the ``userType`` discriminator
- Required text fields must be present and non-empty
- ``timestamp`` and ``userType`` are stamped by the server, never by the client
"""

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# BSON integers are signed 64-bit; larger values are stored as doubles
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class UserType(str, Enum):
    """Known signup record kinds."""

    BUSINESS = "business"
    PROVIDER = "provider"


class SignupRecord(BaseModel):
    """
    Base model for a signup submission.

    Wire names are camelCase. Unknown fields are dropped and numeric input
    for text fields is accepted as its string form.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class BusinessSignup(SignupRecord):
    """Business looking for storage space."""

    business_name: str = Field(min_length=1, description="Business name")
    email: str = Field(min_length=1, description="Contact email")
    phone: Optional[str] = Field(default=None, description="Contact phone")
    website: Optional[str] = Field(default=None, description="Business website")
    order_volume: Optional[str] = Field(default=None, description="Expected order volume")
    notes: Optional[str] = Field(default=None, description="Free-form notes")


class ProviderSignup(SignupRecord):
    """Space provider offering storage."""

    name: str = Field(min_length=1, description="Provider name")
    email: str = Field(min_length=1, description="Contact email")
    phone: str = Field(min_length=1, description="Contact phone")
    address: str = Field(min_length=1, description="Address of the offered space")
    space_size: Union[int, float] = Field(description="Size of the offered space")
    space_type: str = Field(min_length=1, description="Kind of space, e.g. warehouse")
    availability: str = Field(min_length=1, description="When the space is available")

    @field_validator("space_size")
    def check_space_size(cls, v: Union[int, float]) -> Union[int, float]:
        """Reject NaN and infinities; widen integers outside the int64 range."""
        if isinstance(v, int) and not INT64_MIN <= v <= INT64_MAX:
            try:
                v = float(v)
            except OverflowError:
                raise ValueError("spaceSize is out of range") from None
        if not math.isfinite(v):
            raise ValueError("spaceSize must be a finite number")
        return v


SIGNUP_MODELS: Dict[UserType, Type[SignupRecord]] = {
    UserType.BUSINESS: BusinessSignup,
    UserType.PROVIDER: ProviderSignup,
}


class SignupResponse(BaseModel):
    """201 response for a stored signup."""

    success: bool = True
    message: str
    id: str


class RecordListResponse(BaseModel):
    """Response of the read-all endpoints."""

    success: bool = True
    count: int
    data: List[Dict[str, Any]]


class ErrorResponse(BaseModel):
    """
    Standard error envelope.

    ``error`` carries the detail text outside production only.
    """

    success: bool = False
    message: str
    error: Optional[str] = None
