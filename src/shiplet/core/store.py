"""
Record store backed by MongoDB.

Two independent append/read collections, one per signup kind. Records are
validated before the single insert, so a rejected record is never written.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog
from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError

from ..models.signup import SIGNUP_MODELS, UserType
from .exceptions import ValidationError

logger = structlog.get_logger(__name__)

COLLECTION_NAMES: Dict[UserType, str] = {
    UserType.BUSINESS: "businesses",
    UserType.PROVIDER: "providers",
}


def serialize_document(doc: Any) -> Any:
    """
    Recursively serialize a MongoDB document (or a list of documents)
    into JSON-friendly types.
    - ObjectId -> str
    - datetime -> ISO string
    - "_id" -> "id"
    """
    if isinstance(doc, list):
        return [serialize_document(item) for item in doc]

    if not isinstance(doc, dict):
        return doc

    out = {}
    for k, v in doc.items():
        if isinstance(v, ObjectId):
            out[k] = str(v)
        elif isinstance(v, datetime):
            out[k] = v.isoformat()
        elif isinstance(v, (dict, list)):
            out[k] = serialize_document(v)
        else:
            out[k] = v

    if "_id" in out:
        out["id"] = out.pop("_id")

    return out


def _describe_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


class RecordStore:
    """
    Append/read access to the signup collections.

    Wraps a motor database handle; the handle is owned by the connector.
    """

    def __init__(self, database: Any) -> None:
        self.database = database
        self.collections = {
            user_type: database[name] for user_type, name in COLLECTION_NAMES.items()
        }

    async def ensure_indexes(self) -> None:
        """Create the listing index on each collection. Idempotent."""
        for collection in self.collections.values():
            await collection.create_index([("timestamp", -1)])
        logger.info("Record store indexes ensured", collections=list(COLLECTION_NAMES.values()))

    async def create(self, user_type: UserType, fields: Dict[str, Any]) -> str:
        """
        Validate and persist a new signup record.

        Returns the generated id. Raises ValidationError without writing
        anything when a required field is missing or malformed.
        """
        model = SIGNUP_MODELS[user_type]
        try:
            record = model.model_validate(fields)
        except PydanticValidationError as e:
            errors = _describe_errors(e)
            summary = ", ".join(f"{err['field']}: {err['message']}" for err in errors)
            raise ValidationError(
                f"{model.__name__} validation failed: {summary}",
                details={"errors": errors},
            ) from e

        document = record.model_dump(by_alias=True, exclude_none=True)
        document["timestamp"] = datetime.now(timezone.utc)
        document["userType"] = user_type.value

        result = await self.collections[user_type].insert_one(document)
        record_id = str(result.inserted_id)

        logger.info("Signup record created", user_type=user_type.value, id=record_id)
        return record_id

    async def list_all(self, user_type: UserType) -> List[Dict[str, Any]]:
        """Return every record of a kind, most recent signup first."""
        cursor = self.collections[user_type].find().sort([("timestamp", -1), ("_id", -1)])
        documents = await cursor.to_list(length=None)
        return [serialize_document(doc) for doc in documents]
