from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from postal.models.shipment import ShipmentStatus, ShipmentType, ShipmentWeight

_camel = dict(alias_generator=to_camel, populate_by_name=True)


class ShipmentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", **_camel)

    shipment_number: str = Field(..., min_length=1, max_length=64)
    type: ShipmentType
    status: ShipmentStatus
    weight: ShipmentWeight
    origin_id: str = Field(..., min_length=1, max_length=32)
    destination_id: Optional[str] = Field(None, min_length=1, max_length=32)


class ShipmentUpdate(BaseModel):
    """Every field optional; only supplied, non-null fields count as a change."""

    model_config = ConfigDict(extra="forbid", **_camel)

    shipment_number: Optional[str] = Field(None, min_length=1, max_length=64)
    type: Optional[ShipmentType] = None
    status: Optional[ShipmentStatus] = None
    weight: Optional[ShipmentWeight] = None
    origin_id: Optional[str] = Field(None, min_length=1, max_length=32)
    destination_id: Optional[str] = Field(None, min_length=1, max_length=32)

    def changes(self) -> Dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class ShipmentFilter(BaseModel):
    model_config = ConfigDict(**_camel)

    status: Optional[ShipmentStatus] = None
    type: Optional[ShipmentType] = None
    weight: Optional[ShipmentWeight] = None
    shipment_number: Optional[str] = None
    # zip code; matches shipments currently handled there
    post_office_id: Optional[str] = None


class ShipmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, **_camel)

    id: int
    shipment_number: str
    type: ShipmentType
    status: ShipmentStatus
    weight: ShipmentWeight
    origin_id: str
    destination_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ShipmentPage(BaseModel):
    total: int
    page: int
    limit: int
    shipments: List[ShipmentOut]
