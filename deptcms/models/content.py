"""
Content model
"""
from sqlalchemy import Column, BigInteger, Integer, String, Text, TIMESTAMP
from deptcms.db.database import Base
from deptcms.utils.timeutil import utcnow


class Content(Base):
    __tablename__ = "contents"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    author = Column(String(255), nullable=False)  # publishing administrator's email
    departments = Column(String(255), nullable=False)  # normalized, e.g. "CSE,ECE" or "ALL"

    # Media attachment (all null when there is none)
    media_filename = Column(String(255), nullable=True)
    media_original_name = Column(String(255), nullable=True)
    media_mime_type = Column(String(128), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
