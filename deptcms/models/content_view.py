"""
Content view model (one row per content and viewer)
"""
from sqlalchemy import Column, BigInteger, Integer, String, TIMESTAMP, ForeignKey, UniqueConstraint
from deptcms.db.database import Base
from deptcms.utils.timeutil import utcnow


class ContentView(Base):
    __tablename__ = "content_views"
    __table_args__ = (
        UniqueConstraint("content_id", "viewer_email", name="uq_content_views_content_viewer"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    content_id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("contents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    viewer_email = Column(String(255), nullable=False)
    viewed_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
