"""
Visibility resolver

Decides which content records a requester may see. Administrators and
ALL-department requesters see the whole catalog; everyone else sees records
tagged ALL or tagged with their own department. Results are ordered newest
first and annotated with view counts from the view ledger.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from deptcms.core.departments import Department, DepartmentSet
from deptcms.core.errors import DataIntegrityError
from deptcms.models.content import Content
from deptcms.services.view_ledger import ViewLedger

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ResolvedContent:
    """A visible content record and its view count"""
    record: Content
    view_count: int


def _sort_key(record) -> tuple:
    created_at = record.created_at or _EPOCH
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (created_at, record.id or 0)


def newest_first(catalog: Iterable) -> list:
    """Order records by created_at descending, newer id first on ties"""
    return sorted(catalog, key=_sort_key, reverse=True)


def visible_records(department: Department, is_admin: bool, catalog: Iterable) -> list:
    """
    Filter a catalog down to what a requester may see

    Records with no usable department are excluded on the non-admin path
    and logged; the admin path returns everything untouched.

    Args:
        department: the requester's department
        is_admin: whether the requester is an administrator
        catalog: content records (anything with id, departments, created_at)

    Returns:
        list: visible records, newest first
    """
    if is_admin or department == Department.ALL:
        return newest_first(catalog)

    visible = []
    for record in catalog:
        try:
            tagged = DepartmentSet.from_stored(record.departments)
        except DataIntegrityError as e:
            logger.warning("Skipping content %s: %s", record.id, e.message)
            continue
        if tagged.covers(department):
            visible.append(record)
    return newest_first(visible)


def annotate(records: Sequence, counts: Dict[int, int]) -> List[ResolvedContent]:
    """Attach view counts, defaulting to 0 for records nobody has viewed"""
    return [ResolvedContent(record=record, view_count=counts.get(record.id, 0)) for record in records]


class VisibilityResolver:
    """Resolves the visible, annotated catalog for a requester"""

    def __init__(self, session: AsyncSession, ledger: Optional[ViewLedger] = None):
        self.session = session
        self.ledger = ledger or ViewLedger(session)

    async def list_content(self) -> List[Content]:
        """Full catalog scan"""
        result = await self.session.execute(
            select(Content).order_by(desc(Content.created_at), desc(Content.id))
        )
        return list(result.scalars().all())

    async def _catalog_with_counts(self) -> Tuple[List[Content], Dict[int, int]]:
        """
        Catalog and view counts from a single statement

        One SELECT sees one snapshot, so a record and its count never come
        from two different points in time.
        """
        counts = self.ledger.counts_query().subquery()
        result = await self.session.execute(
            select(Content, counts.c.view_count)
            .outerjoin(counts, counts.c.content_id == Content.id)
            .order_by(desc(Content.created_at), desc(Content.id))
        )
        catalog = []
        view_counts = {}
        for record, view_count in result.all():
            catalog.append(record)
            if view_count:
                view_counts[record.id] = view_count
        return catalog, view_counts

    async def resolve(
        self,
        department: Department,
        is_admin: bool,
        catalog: Optional[Sequence[Content]] = None,
    ) -> List[ResolvedContent]:
        """
        Visible content for a requester, newest first, with view counts

        Args:
            department: the requester's department
            is_admin: whether the requester is an administrator
            catalog: records to filter; loaded from the store when omitted

        Returns:
            List[ResolvedContent]
        """
        if catalog is None:
            catalog, counts = await self._catalog_with_counts()
        else:
            counts = await self.ledger.counts_by_content()

        records = visible_records(department, is_admin, catalog)
        return annotate(records, counts)
