from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ENCRYPTED_PLACEHOLDER = "[ENCRYPTED]"


class PriceType(str, Enum):
    FREE = "free"
    PAID = "paid"


class RecordModel(BaseModel):
    """Stored records use camelCase keys in their JSON form"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Comment(RecordModel):
    text: str
    rating: float
    author: str = "Anonymous"
    timestamp: int = 0


class Prompt(RecordModel):
    id: str
    name: str
    description: str = ""
    creator: str = "Anonymous"
    is_anonymous: bool = False
    seller_contact: str = ""
    supported_targets: List[str] = Field(default_factory=list)
    content: str
    encrypted_content: Optional[str] = None
    price_type: PriceType = PriceType.FREE
    price: int = 0
    rating: float = 0
    rating_count: int = 0
    comments: List[Comment] = Field(default_factory=list)
    timestamp: int
    status: str = "approved"

    @classmethod
    def from_json(cls, raw: str) -> "Prompt":
        return cls.model_validate_json(raw)
