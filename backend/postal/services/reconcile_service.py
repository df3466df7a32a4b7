import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from postal.repositories.post_office_repo import PostOfficeRepository
from postal.repositories.shipment_repo import ShipmentRepository
from postal.utils.transactions import smart_transaction

log = logging.getLogger("postal.reconcile")


class ReconciliationService:
    """
    Repair shipment references to zip codes that no longer exist.

    A reference goes stale when a shipment write races a rename (the
    reference check passed against the old zip code). Zip codes can be
    reused by later offices, so a stale zip code is only repaired when the
    release history names exactly one office that ever gave it up, that
    office gave it up by renaming, and the office still exists. The
    reference then moves to that office's current zip code. Anything else
    is reported as unresolved and left untouched.
    """

    def __init__(self, db: Session):
        self.db = db
        self.offices = PostOfficeRepository(db)
        self.shipments = ShipmentRepository(db)

    def resolve(self, zip_code: str) -> Optional[str]:
        releases = self.offices.releases_of(zip_code)
        if len(releases) != 1:
            # never held, or held by several offices over time: ambiguous
            return None
        release = releases[0]
        if release.new_zip_code is None:
            return None
        office = self.offices.get(release.post_office_id)
        if office is None or office.zip_code == zip_code:
            return None
        return office.zip_code

    def sweep(self) -> Dict:
        stale = self.shipments.with_dangling_references()
        if not stale:
            return {"checked": 0, "repaired": 0, "unresolved": []}

        known = self.offices.zip_codes()
        targets: Dict[str, Optional[str]] = {}
        repaired = 0
        unresolved = set()

        with smart_transaction(self.db):
            for shipment in stale:
                for attr in ("origin_id", "destination_id"):
                    zip_code = getattr(shipment, attr)
                    if zip_code is None or zip_code in known:
                        continue
                    if zip_code not in targets:
                        targets[zip_code] = self.resolve(zip_code)
                    target = targets[zip_code]
                    if target is None:
                        unresolved.add(zip_code)
                        continue
                    log.info(
                        "shipment %s: %s %s -> %s",
                        shipment.shipment_number, attr, zip_code, target,
                    )
                    setattr(shipment, attr, target)
                    repaired += 1
            self.db.flush()

        if unresolved:
            log.warning("unresolved zip code references: %s", sorted(unresolved))
        return {
            "checked": len(stale),
            "repaired": repaired,
            "unresolved": sorted(unresolved),
        }
