from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from postal.errors import DuplicateKey
from postal.models.post_office import PostOffice
from postal.models.zip_code_release import ZipCodeRelease


class PostOfficeRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, office_id: int) -> Optional[PostOffice]:
        return self.db.get(PostOffice, office_id)

    def get_by_zip_code(self, zip_code: str) -> Optional[PostOffice]:
        return self.db.query(PostOffice).filter(PostOffice.zip_code == zip_code).first()

    def exists(self, zip_code: str) -> bool:
        return self.get_by_zip_code(zip_code) is not None

    def list(self) -> List[PostOffice]:
        return self.db.query(PostOffice).order_by(PostOffice.id).all()

    def zip_codes(self) -> set:
        return {z for (z,) in self.db.query(PostOffice.zip_code).all()}

    def add(self, zip_code: str) -> PostOffice:
        office = PostOffice(zip_code=zip_code)
        with self._unique(zip_code):
            self.db.add(office)
        return office

    def set_zip_code(self, office: PostOffice, zip_code: str) -> PostOffice:
        with self._unique(zip_code):
            office.zip_code = zip_code
        return office

    def delete(self, office: PostOffice) -> None:
        self.db.delete(office)
        self.db.flush()

    def record_release(
        self,
        office_id: int,
        old_zip: str,
        new_zip: Optional[str] = None,
        rewritten: int = 0,
    ) -> ZipCodeRelease:
        """new_zip is None when the office was deleted."""
        release = ZipCodeRelease(
            post_office_id=office_id,
            old_zip_code=old_zip,
            new_zip_code=new_zip,
            shipments_rewritten=rewritten,
        )
        self.db.add(release)
        self.db.flush()
        return release

    def releases_of(self, zip_code: str) -> List[ZipCodeRelease]:
        return (
            self.db.query(ZipCodeRelease)
            .filter(ZipCodeRelease.old_zip_code == zip_code)
            .order_by(ZipCodeRelease.released_at, ZipCodeRelease.id)
            .all()
        )

    @contextmanager
    def _unique(self, zip_code: str):
        # the unique index is the real guarantee; callers' pre-checks can race.
        # the SAVEPOINT keeps the session usable after a conflict
        try:
            with self.db.begin_nested():
                yield
        except IntegrityError as e:
            raise DuplicateKey(f"Post Office already exist: {zip_code}") from e
