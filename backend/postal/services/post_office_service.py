import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from postal.config import Settings, get_settings
from postal.errors import DuplicateKey, NotFound
from postal.models.post_office import PostOffice
from postal.repositories.post_office_repo import PostOfficeRepository
from postal.services.reference_guard import ReferenceGuard
from postal.services.rename_cascade import RenameCascade
from postal.utils.transactions import smart_transaction

log = logging.getLogger("postal.post_offices")


class PostOfficeService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.repo = PostOfficeRepository(db)
        self.guard = ReferenceGuard(db)

    def list(self) -> List[PostOffice]:
        return self.repo.list()

    def get(self, office_id: int) -> PostOffice:
        office = self.repo.get(office_id)
        if office is None:
            raise NotFound("Post office not found")
        return office

    def create(self, zip_code: str) -> PostOffice:
        if self.repo.exists(zip_code):
            raise DuplicateKey(f"Post Office already exist: {zip_code}")
        with smart_transaction(self.db):
            office = self.repo.add(zip_code)
        log.info("post office %s created (id=%s)", office.zip_code, office.id)
        return office

    def rename(self, office_id: int, zip_code: str) -> PostOffice:
        office = self.get(office_id)
        if office.zip_code == zip_code:
            return office
        taken = self.repo.get_by_zip_code(zip_code)
        if taken is not None:
            raise DuplicateKey(f"Post Office already exist: {zip_code}")

        cascade = RenameCascade(
            self.db,
            max_attempts=self.settings.CASCADE_MAX_ATTEMPTS,
            lock_timeout=self.settings.RENAME_LOCK_TIMEOUT_SECONDS,
        )
        return cascade.run(office.id, zip_code)

    def delete(self, office_id: int) -> None:
        office = self.get(office_id)
        self.guard.check_no_active_dependents(office)
        zip_code = office.zip_code
        with smart_transaction(self.db):
            self.repo.delete(office)
            self.repo.record_release(office_id, zip_code)
        log.info("post office %s deleted", zip_code)
