import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from postal.config import Settings, get_settings
from postal.errors import DuplicateKey, InvalidFilter, NotFound
from postal.models.shipment import Shipment
from postal.repositories.shipment_repo import ShipmentRepository
from postal.schemas.shipment_schema import ShipmentCreate, ShipmentFilter, ShipmentUpdate
from postal.services.lifecycle import ShipmentLifecycle
from postal.services.reference_guard import ReferenceGuard
from postal.utils.transactions import smart_transaction

log = logging.getLogger("postal.shipments")


class ShipmentService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.repo = ShipmentRepository(db)
        self.guard = ReferenceGuard(db)
        self.lifecycle = ShipmentLifecycle(
            delivered_is_terminal=self.settings.DELIVERED_IS_TERMINAL
        )

    def get(self, shipment_id: int) -> Shipment:
        shipment = self.repo.get(shipment_id)
        if shipment is None:
            raise NotFound("Shipment not found")
        return shipment

    def list(
        self, flt: ShipmentFilter, page: int = 1, limit: Optional[int] = None
    ) -> Dict:
        limit = limit if limit is not None else self.settings.DEFAULT_PAGE_LIMIT
        if page < 1 or limit < 1:
            raise InvalidFilter("page and limit must be positive integers")
        items, total = self.repo.find(flt, skip=(page - 1) * limit, limit=limit)
        return {"total": total, "page": page, "limit": limit, "shipments": items}

    def create(self, payload: ShipmentCreate) -> Shipment:
        if self.repo.get_by_number(payload.shipment_number):
            raise DuplicateKey(f"Shipment number already exist: {payload.shipment_number}")
        self.guard.check_references(payload.origin_id, payload.destination_id)

        with smart_transaction(self.db):
            shipment = self.repo.add(**payload.model_dump())
        log.info(
            "shipment %s created at %s (%s)",
            shipment.shipment_number, shipment.origin_id, shipment.status.value,
        )
        return shipment

    def update(self, shipment_id: int, payload: ShipmentUpdate) -> Shipment:
        shipment = self.get(shipment_id)
        previous = shipment.status
        changes = self.lifecycle.authorize(shipment, payload.changes())

        self.guard.check_references(changes.get("origin_id"), changes.get("destination_id"))
        number = changes.get("shipment_number")
        if number and number != shipment.shipment_number and self.repo.get_by_number(number):
            raise DuplicateKey(f"Shipment number already exist: {number}")

        with smart_transaction(self.db):
            self.repo.apply(shipment, changes)
        if shipment.status != previous:
            log.info(
                "shipment %s moved %s -> %s",
                shipment.shipment_number, previous.value, shipment.status.value,
            )
        return shipment

    def delete(self, shipment_id: int) -> None:
        # no dependency check, unlike post offices
        shipment = self.get(shipment_id)
        with smart_transaction(self.db):
            self.repo.delete(shipment)
        log.info("shipment %s deleted", shipment.shipment_number)
