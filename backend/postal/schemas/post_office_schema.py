from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PostOfficeIn(BaseModel):
    """Payload for CreatePostOffice and RenamePostOffice."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )
    zip_code: str = Field(..., min_length=1, max_length=32)


class PostOfficeOut(BaseModel):
    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )
    id: int
    zip_code: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
