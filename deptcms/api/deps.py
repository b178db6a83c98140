"""
Service dependencies
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from deptcms.db.database import get_db
from deptcms.services.view_ledger import ViewLedger
from deptcms.services.visibility import VisibilityResolver


async def get_view_ledger(db: AsyncSession = Depends(get_db)) -> ViewLedger:
    return ViewLedger(db)


async def get_visibility_resolver(
    ledger: ViewLedger = Depends(get_view_ledger),
) -> VisibilityResolver:
    return VisibilityResolver(ledger.session, ledger)
