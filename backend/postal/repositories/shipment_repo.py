from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from postal.errors import DuplicateKey
from postal.models.post_office import PostOffice
from postal.models.shipment import Shipment, ShipmentStatus
from postal.schemas.shipment_schema import ShipmentFilter


def handled_at(zip_code: str):
    """
    Shipments currently at `zip_code` in their present phase:
    origin phase for ORIGIN_PROCESSED, destination phase for DESTINATION_PROCESSED.
    DELIVERED shipments never match.
    """
    return or_(
        and_(
            Shipment.status == ShipmentStatus.ORIGIN_PROCESSED,
            Shipment.origin_id == zip_code,
        ),
        and_(
            Shipment.status == ShipmentStatus.DESTINATION_PROCESSED,
            Shipment.destination_id == zip_code,
        ),
    )


class ShipmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, shipment_id: int) -> Optional[Shipment]:
        return self.db.get(Shipment, shipment_id)

    def get_by_number(self, shipment_number: str) -> Optional[Shipment]:
        return (
            self.db.query(Shipment)
            .filter(Shipment.shipment_number == shipment_number)
            .first()
        )

    def add(self, **fields) -> Shipment:
        shipment = Shipment(**fields)
        with self._unique(fields.get("shipment_number")):
            self.db.add(shipment)
        return shipment

    def apply(self, shipment: Shipment, changes: Dict) -> Shipment:
        with self._unique(changes.get("shipment_number")):
            for attr, value in changes.items():
                setattr(shipment, attr, value)
        return shipment

    def delete(self, shipment: Shipment) -> None:
        self.db.delete(shipment)
        self.db.flush()

    def conditions(self, flt: ShipmentFilter) -> list:
        conds = []
        if flt.status:
            conds.append(Shipment.status == flt.status)
        if flt.type:
            conds.append(Shipment.type == flt.type)
        if flt.weight:
            conds.append(Shipment.weight == flt.weight)
        if flt.shipment_number:
            conds.append(Shipment.shipment_number == flt.shipment_number)
        if flt.post_office_id:
            conds.append(handled_at(flt.post_office_id))
        return conds

    def find(
        self, flt: ShipmentFilter, skip: int = 0, limit: int = 10
    ) -> Tuple[List[Shipment], int]:
        query = self.db.query(Shipment).filter(*self.conditions(flt))
        total = query.with_entities(func.count(Shipment.id)).scalar() or 0
        items = query.order_by(Shipment.id).offset(skip).limit(limit).all()
        return items, total

    def first_handled_at(self, zip_code: str) -> Optional[Shipment]:
        return self.db.query(Shipment).filter(handled_at(zip_code)).first()

    def rewrite_zip_code(self, old_zip: str, new_zip: str) -> int:
        """
        Single bulk UPDATE moving every origin/destination reference from
        old_zip to new_zip. Both columns are evaluated independently, so a
        shipment whose origin and destination are both old_zip gets both.
        Re-running it after success matches nothing, so retries are safe.
        """
        stmt = (
            update(Shipment)
            .where(or_(Shipment.origin_id == old_zip, Shipment.destination_id == old_zip))
            .values(
                origin_id=case(
                    (Shipment.origin_id == old_zip, new_zip), else_=Shipment.origin_id
                ),
                destination_id=case(
                    (Shipment.destination_id == old_zip, new_zip),
                    else_=Shipment.destination_id,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        # bulk UPDATE bypasses the identity map
        self.db.expire_all()
        return result.rowcount or 0

    def with_dangling_references(self) -> List[Shipment]:
        known = select(PostOffice.zip_code)
        return (
            self.db.query(Shipment)
            .filter(
                or_(
                    Shipment.origin_id.not_in(known),
                    and_(
                        Shipment.destination_id.is_not(None),
                        Shipment.destination_id.not_in(known),
                    ),
                )
            )
            .order_by(Shipment.id)
            .all()
        )

    @contextmanager
    def _unique(self, shipment_number: Optional[str]):
        # SAVEPOINT keeps the session usable after a conflict
        try:
            with self.db.begin_nested():
                yield
        except IntegrityError as e:
            raise DuplicateKey(f"Shipment number already exist: {shipment_number}") from e
