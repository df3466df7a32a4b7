from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from postal.db import Base


class ZipCodeRelease(Base):
    """
    History of post offices giving up a zip code, read by the reconciliation
    sweep. A rename sets new_zip_code; a deletion leaves it NULL.

    post_office_id is not a foreign key; rows outlive the office.
    """

    __tablename__ = "zip_code_releases"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_office_id = Column(Integer, nullable=False, index=True)
    old_zip_code = Column(String(32), nullable=False, index=True)
    new_zip_code = Column(String(32), nullable=True)
    shipments_rewritten = Column(Integer, nullable=False, default=0)
    released_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
