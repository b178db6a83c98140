"""
View ledger

Records at most one view per (content, viewer) and derives per-content view
counts from those events. Counts are never stored on the content row.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import Select, select, func, desc
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from deptcms.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from deptcms.models.content import Content
from deptcms.models.content_view import ContentView
from deptcms.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

# Dialects with a native "insert ... on conflict do nothing"
_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class ViewAck:
    """Result of logging a view"""
    content_id: int
    viewer_identity: str
    created: bool  # False when the viewer had already been recorded


@dataclass(frozen=True)
class ViewEntry:
    """One row of a content's view log"""
    viewer_identity: str
    viewed_at: datetime


class ViewLedger:
    """View accounting over an explicit store session"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _content_exists(self, content_id: int) -> bool:
        result = await self.session.execute(
            select(Content.id).where(Content.id == content_id)
        )
        return result.scalar_one_or_none() is not None

    async def record_view(self, content_id: int, viewer_identity: Optional[str]) -> ViewAck:
        """
        Record that a viewer has seen a content item

        Idempotent per (content_id, viewer_identity). Two concurrent calls for
        the same pair leave exactly one row; the unique constraint on the
        table decides which insert wins and the loser is a no-op.

        Args:
            content_id: content record id
            viewer_identity: viewer's email

        Returns:
            ViewAck: created is True only for the call that inserted the row

        Raises:
            InvalidInputError: viewer_identity is missing or blank
            NotFoundError: no content record with that id
        """
        viewer = (viewer_identity or "").strip()
        if not viewer:
            raise InvalidInputError("viewerIdentity is required")

        if not await self._content_exists(content_id):
            raise NotFoundError(f"Content {content_id} not found")

        values = {
            "content_id": content_id,
            "viewer_email": viewer,
            "viewed_at": utcnow(),
        }
        dialect = self.session.get_bind().dialect.name
        insert_factory = _UPSERT_DIALECTS.get(dialect)

        if insert_factory is not None:
            stmt = (
                insert_factory(ContentView)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["content_id", "viewer_email"])
            )
            # Core-level execute so rowcount reports whether a row went in
            conn = await self.session.connection()
            result = await conn.execute(stmt)
            await self.session.commit()
            created = result.rowcount == 1
        else:
            created = await self._insert_with_savepoint(values)

        if created:
            logger.debug("Logged view of content %s by %s", content_id, viewer)
        return ViewAck(content_id=content_id, viewer_identity=viewer, created=created)

    async def _insert_with_savepoint(self, values: dict) -> bool:
        """Generic path: plain insert, a unique violation means already recorded"""
        try:
            async with self.session.begin_nested():
                self.session.add(ContentView(**values))
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return False
        return True

    @staticmethod
    def counts_query() -> Select:
        """(content_id, view_count) rows, one per content with at least one view"""
        return (
            select(
                ContentView.content_id.label("content_id"),
                func.count(func.distinct(ContentView.viewer_email)).label("view_count"),
            )
            .group_by(ContentView.content_id)
        )

    async def counts_by_content(self) -> Dict[int, int]:
        """
        Distinct viewers per content id

        Content ids without any view are absent; callers default them to 0.
        """
        result = await self.session.execute(self.counts_query())
        return {content_id: count for content_id, count in result.all()}

    async def view_log(self, content_id: int, requester_is_admin: bool) -> List[ViewEntry]:
        """
        Who viewed a content item and when, newest first

        Raises:
            ForbiddenError: the requester is not an administrator
            NotFoundError: no content record with that id
        """
        if not requester_is_admin:
            raise ForbiddenError("Admin only: view logs")

        if not await self._content_exists(content_id):
            raise NotFoundError(f"Content {content_id} not found")

        result = await self.session.execute(
            select(ContentView.viewer_email, ContentView.viewed_at)
            .where(ContentView.content_id == content_id)
            .order_by(desc(ContentView.viewed_at), desc(ContentView.id))
        )
        return [
            ViewEntry(viewer_identity=viewer, viewed_at=viewed_at)
            for viewer, viewed_at in result.all()
        ]
