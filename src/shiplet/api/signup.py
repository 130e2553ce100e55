"""
Signup API endpoints.

- POST /api/signup: store a business or provider signup
- GET /api/businesses, GET /api/providers: list stored signups, newest first
"""

import json
from typing import Any, Dict, Union

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..config import Settings
from ..core.auth import get_app_settings, require_api_key
from ..core.connector import StoreConnector
from ..core.exceptions import (
    MalformedBodyError,
    PayloadTooLargeError,
    UnknownUserTypeError,
    ValidationError,
    error_content,
)
from ..models.signup import ErrorResponse, RecordListResponse, SignupResponse, UserType

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_api_key)])

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def get_store_connector(request: Request) -> StoreConnector:
    """Dependency to get the store connector from app state."""
    return request.app.state.connector


def is_json_media_type(media_type: str) -> bool:
    return media_type == "application/json" or (
        media_type.startswith("application/") and media_type.endswith("+json")
    )


async def read_payload(request: Request, max_bytes: int) -> Dict[str, Any]:
    """
    Decode a JSON or urlencoded request body into a dict.

    Bodies larger than ``max_bytes`` are rejected before decoding. Bodies of
    any other media type decode to an empty dict.
    """
    declared_length = request.headers.get("content-length")
    if declared_length and declared_length.isdigit() and int(declared_length) > max_bytes:
        raise PayloadTooLargeError(max_bytes)

    body = await request.body()
    if len(body) > max_bytes:
        raise PayloadTooLargeError(max_bytes)

    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if media_type == FORM_CONTENT_TYPE:
        form = await request.form()
        return {key: value for key, value in form.items()}

    # Other media types carry no fields
    if not is_json_media_type(media_type) or not body.strip():
        return {}

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise MalformedBodyError("Request body is not valid JSON") from e

    if not isinstance(payload, dict):
        raise MalformedBodyError("Request body must be a JSON object")
    return payload


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid user type or signup fields"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        413: {"model": ErrorResponse, "description": "Request body too large"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Submit a signup",
)
async def signup(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    connector: StoreConnector = Depends(get_store_connector),
) -> Union[SignupResponse, JSONResponse]:
    """
    Store a business or provider signup selected by ``userType``.
    """
    payload = await read_payload(request, settings.max_body_bytes)
    raw_user_type = payload.pop("userType", None)

    logger.info(
        "Received signup data",
        user_type=raw_user_type,
        fields=sorted(payload),
    )

    try:
        user_type = UserType(raw_user_type)
    except ValueError:
        logger.warning("Invalid user type", user_type=raw_user_type)
        raise UnknownUserTypeError(raw_user_type) from None

    try:
        record_id = await connector.get_store().create(user_type, payload)
    except ValidationError as e:
        logger.warning(
            "Signup validation failed",
            user_type=user_type.value,
            errors=e.details.get("errors"),
        )
        return JSONResponse(
            status_code=e.status_code,
            content=error_content("Error processing signup", str(e), settings.is_production),
        )
    except Exception as e:
        logger.error(
            "Error in signup route",
            user_type=user_type.value,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=error_content("Error processing signup", str(e), settings.is_production),
        )

    return SignupResponse(
        message=f"{user_type.value} signup successful",
        id=record_id,
    )


async def _list_records(
    user_type: UserType,
    label: str,
    settings: Settings,
    connector: StoreConnector,
) -> Union[RecordListResponse, JSONResponse]:
    try:
        records = await connector.get_store().list_all(user_type)
    except Exception as e:
        logger.error(
            "Error fetching records",
            kind=label,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=error_content(f"Error fetching {label}", str(e), settings.is_production),
        )

    return RecordListResponse(count=len(records), data=records)


@router.get(
    "/businesses",
    response_model=RecordListResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="List business signups",
)
async def list_businesses(
    settings: Settings = Depends(get_app_settings),
    connector: StoreConnector = Depends(get_store_connector),
) -> Union[RecordListResponse, JSONResponse]:
    """All business signups, newest first."""
    return await _list_records(UserType.BUSINESS, "businesses", settings, connector)


@router.get(
    "/providers",
    response_model=RecordListResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="List provider signups",
)
async def list_providers(
    settings: Settings = Depends(get_app_settings),
    connector: StoreConnector = Depends(get_store_connector),
) -> Union[RecordListResponse, JSONResponse]:
    """All provider signups, newest first."""
    return await _list_records(UserType.PROVIDER, "providers", settings, connector)
