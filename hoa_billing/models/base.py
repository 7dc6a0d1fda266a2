import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Prefixed identifier, e.g. CVT3F2A... for transactions."""
    return f"{prefix}{uuid.uuid4().hex.upper()}"


class MongoModel(BaseModel):
    """
    Base for documents stored in MongoDB.

    Field aliases are the stored field names; ``to_document`` dumps in python
    mode so Money becomes Decimal128 while JSON responses get decimal strings.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        from_attributes=True,
        use_enum_values=True
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]):
        data = dict(doc)
        data.pop("_id", None)
        return cls.model_validate(data)
