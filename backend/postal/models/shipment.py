import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Integer, String

from postal.db import Base


class ShipmentType(str, enum.Enum):
    LETTER = "LETTER"
    PACKAGE = "PACKAGE"


class ShipmentWeight(str, enum.Enum):
    LESS_THAN_1KG = "LESS_THAN_1KG"
    BETWEEN_1KG_5KG = "BETWEEN_1KG_5KG"
    MORE_THAN_5KG = "MORE_THAN_5KG"


class ShipmentStatus(str, enum.Enum):
    """
    ORIGIN_PROCESSED -> DESTINATION_PROCESSED -> DELIVERED

    ORIGIN_PROCESSED is only ever set at creation.
    """

    ORIGIN_PROCESSED = "ORIGIN_PROCESSED"
    DESTINATION_PROCESSED = "DESTINATION_PROCESSED"
    DELIVERED = "DELIVERED"


class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shipment_number = Column(String(64), unique=True, index=True, nullable=False)
    type = Column(Enum(ShipmentType, native_enum=False), nullable=False)
    weight = Column(Enum(ShipmentWeight, native_enum=False), nullable=False)
    status = Column(Enum(ShipmentStatus, native_enum=False), nullable=False, index=True)
    # zip codes of post offices, not foreign keys (see RenameCascade)
    origin_id = Column(String(32), nullable=False, index=True)
    destination_id = Column(String(32), nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<Shipment number={self.shipment_number} status={self.status}>"
