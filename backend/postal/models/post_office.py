from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from postal.db import Base


class PostOffice(Base):
    __tablename__ = "post_offices"
    # ids are recorded in ZipCodeRelease history and must never be reused
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    # natural key; shipments copy it into origin_id / destination_id
    zip_code = Column(String(32), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<PostOffice id={self.id} zip_code={self.zip_code}>"
