"""
Pydantic data models package.

Contains all data validation models for:
- Signup records (business, provider)
- API responses and the error envelope
"""

from .signup import (
    SIGNUP_MODELS,
    BusinessSignup,
    ErrorResponse,
    ProviderSignup,
    RecordListResponse,
    SignupRecord,
    SignupResponse,
    UserType,
)

__all__ = [
    # Signup records
    "UserType",
    "SignupRecord",
    "BusinessSignup",
    "ProviderSignup",
    "SIGNUP_MODELS",

    # Responses
    "SignupResponse",
    "RecordListResponse",
    "ErrorResponse",
]
