from typing import Optional

from sqlalchemy.orm import Session

from postal.errors import HasActiveDependents, ReferenceNotFound
from postal.models.post_office import PostOffice
from postal.repositories.post_office_repo import PostOfficeRepository
from postal.repositories.shipment_repo import ShipmentRepository


class ReferenceGuard:
    """
    Preconditions tying shipments to post offices by zip code.

    The checks read the store and the caller writes afterwards; nothing
    serializes the two, so a concurrent rename or delete can slip in between.
    The reconciliation sweep repairs references left behind that way.
    """

    def __init__(self, db: Session):
        self.offices = PostOfficeRepository(db)
        self.shipments = ShipmentRepository(db)

    def check_references(
        self, origin_id: Optional[str] = None, destination_id: Optional[str] = None
    ) -> None:
        # both are checked before the caller writes anything
        for field, zip_code in (("originId", origin_id), ("destinationId", destination_id)):
            if zip_code is not None and not self.offices.exists(zip_code):
                raise ReferenceNotFound(field, zip_code)

    def check_no_active_dependents(self, office: PostOffice) -> None:
        blocking = self.shipments.first_handled_at(office.zip_code)
        if blocking is not None:
            raise HasActiveDependents(
                f"Can not delete Post Office {office.zip_code}: shipment "
                f"{blocking.shipment_number} is {blocking.status.value} there"
            )
