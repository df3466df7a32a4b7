import logging
import os
import tempfile
import time

from filelock import FileLock, Timeout
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from postal.errors import CascadeFailure, NotFound
from postal.models.post_office import PostOffice
from postal.repositories.post_office_repo import PostOfficeRepository
from postal.repositories.shipment_repo import ShipmentRepository
from postal.utils.transactions import smart_transaction

log = logging.getLogger("postal.cascade")


class RenameCascade:
    """
    Move a post office to a new zip code and carry every shipment
    reference along.

    One database transaction covers the bulk shipment rewrite, the office
    row and the release history entry, so the office only changes once its
    dependents did. Transient store errors (OperationalError) are retried;
    every attempt re-reads the office and the bulk rewrite is idempotent.
    Renames of the same office are serialized across processes with a
    file lock.
    """

    def __init__(
        self,
        db: Session,
        max_attempts: int = 3,
        lock_timeout: float = 10,
        retry_delay: float = 0.05,
    ):
        self.db = db
        self.offices = PostOfficeRepository(db)
        self.shipments = ShipmentRepository(db)
        self.max_attempts = max(1, max_attempts)
        self.lock_timeout = lock_timeout
        self.retry_delay = retry_delay

    def _lock_path(self, office_id: int) -> str:
        locks_dir = os.path.join(tempfile.gettempdir(), "postal_locks")
        os.makedirs(locks_dir, exist_ok=True)
        return os.path.join(locks_dir, f"rename_{office_id}.lock")

    def run(self, office_id: int, new_zip: str) -> PostOffice:
        lock = FileLock(self._lock_path(office_id))
        try:
            with lock.acquire(timeout=self.lock_timeout):
                return self._run_with_retry(office_id, new_zip)
        except Timeout:
            raise CascadeFailure(
                f"Could not acquire rename lock for post office {office_id}; try again"
            )

    def _run_with_retry(self, office_id: int, new_zip: str) -> PostOffice:
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._apply(office_id, new_zip)
            except OperationalError as e:
                self.db.rollback()
                log.warning(
                    "rename of post office %s failed (attempt %d/%d): %s",
                    office_id, attempt, self.max_attempts, e,
                )
                if attempt >= self.max_attempts:
                    raise CascadeFailure(
                        f"Zip code rename aborted after {attempt} attempts; "
                        "post office keeps its old zip code"
                    ) from e
                time.sleep(self.retry_delay * attempt)

    def _apply(self, office_id: int, new_zip: str) -> PostOffice:
        with smart_transaction(self.db):
            office = self.offices.get(office_id)
            if office is None:
                raise NotFound("Post office not found")
            old_zip = office.zip_code
            if old_zip == new_zip:
                return office

            rewritten = self.shipments.rewrite_zip_code(old_zip, new_zip)
            office = self.offices.set_zip_code(office, new_zip)
            self.offices.record_release(office_id, old_zip, new_zip, rewritten)

        log.info(
            "post office %s renamed %s -> %s, %d shipment(s) rewritten",
            office_id, old_zip, new_zip, rewritten,
        )
        return office
