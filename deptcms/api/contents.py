"""
Content API
"""
import logging
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import Optional

from deptcms.api.deps import get_view_ledger, get_visibility_resolver
from deptcms.core.departments import Department, DepartmentSet
from deptcms.core.errors import NotFoundError
from deptcms.db.database import get_db
from deptcms.models.content import Content
from deptcms.models.content_view import ContentView
from deptcms.schemas.common import ResponseModel
from deptcms.schemas.content import (
    ContentUpdate, ContentResponse, MediaInfo,
    ViewCreate, ViewAckResponse, ViewLogEntry
)
from deptcms.services.media_storage import LocalMediaStorage, get_media_storage
from deptcms.services.view_ledger import ViewLedger
from deptcms.services.visibility import VisibilityResolver
from deptcms.utils.auth import Requester, authorizer, get_requester
from deptcms.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/content", tags=["content"])


def content_to_response(record: Content, view_count: int = 0) -> ContentResponse:
    """Build the API view of a content record"""
    media = None
    if record.media_filename:
        media = MediaInfo(
            filename=record.media_filename,
            originalName=record.media_original_name,
            mimeType=record.media_mime_type,
            url=f"/uploads/{record.media_filename}",
        )
    return ContentResponse(
        id=record.id,
        title=record.title or "",
        body=record.body or "",
        author=record.author,
        departments=[label for label in (record.departments or "").split(",") if label],
        media=media,
        viewCount=view_count,
        createdAt=record.created_at,
        updatedAt=record.updated_at,
    )


async def _get_content(db: AsyncSession, content_id: int) -> Content:
    result = await db.execute(select(Content).where(Content.id == content_id))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError(f"Content {content_id} not found")
    return record


@router.get("", response_model=ResponseModel)
async def list_content(
    department: Optional[str] = Query(None, description="Preview a department's view (admins only)"),
    requester: Requester = Depends(get_requester),
    resolver: VisibilityResolver = Depends(get_visibility_resolver),
):
    """
    Content visible to the caller, newest first, with view counts
    """
    if department and requester.is_admin:
        # Administrators may look at the catalog as a department member sees it
        resolved = await resolver.resolve(Department.parse(department), False)
    else:
        resolved = await resolver.resolve(requester.department, requester.is_admin)

    return ResponseModel(
        code=200,
        data=[content_to_response(item.record, item.view_count) for item in resolved]
    )


@router.post("", response_model=ResponseModel)
async def publish_content(
    title: str = Form(""),
    body: str = Form(""),
    departments: str = Form("", description="Comma-separated departments, or ALL"),
    media: Optional[UploadFile] = File(None),
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_media_storage),
):
    """
    Publish a content item (admin only)
    """
    authorizer.require_admin(requester.user, "publish content")
    tagged = DepartmentSet.parse(departments)

    stored = None
    if media is not None and media.filename:
        # One byte past the limit is enough to reject an oversized upload
        data = await media.read(storage.max_bytes + 1)
        stored = await storage.save(media.filename, data, media.content_type)

    record = Content(
        title=title,
        body=body,
        author=requester.identity,
        departments=tagged.to_stored(),
        media_filename=stored.filename if stored else None,
        media_original_name=stored.original_name if stored else None,
        media_mime_type=stored.mime_type if stored else None,
    )

    try:
        db.add(record)
        await db.commit()
        await db.refresh(record)
    except Exception:
        # Do not leave an orphaned upload behind
        if stored:
            await storage.delete(stored.filename)
        raise

    logger.info("Content %s published by %s for %s", record.id, requester.identity, record.departments)
    return ResponseModel(
        code=200,
        message="Content published",
        data=content_to_response(record)
    )


@router.put("/{content_id}", response_model=ResponseModel)
async def update_content(
    content_id: int,
    content_data: ContentUpdate,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a content item's title and body (admin only)
    """
    authorizer.require_admin(requester.user, "update content")
    record = await _get_content(db, content_id)

    if content_data.title is not None:
        record.title = content_data.title
    if content_data.body is not None:
        record.body = content_data.body
    record.updated_at = utcnow()

    await db.commit()
    await db.refresh(record)

    return ResponseModel(
        code=200,
        message="Content updated",
        data=content_to_response(record)
    )


@router.delete("/{content_id}", response_model=ResponseModel)
async def delete_content(
    content_id: int,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_media_storage),
):
    """
    Delete a content item with its view log and media file (admin only)
    """
    authorizer.require_admin(requester.user, "delete content")
    record = await _get_content(db, content_id)
    media_filename = record.media_filename

    # View events first, then the record itself
    await db.execute(
        delete(ContentView).where(ContentView.content_id == content_id)
    )
    await db.execute(
        delete(Content).where(Content.id == content_id)
    )
    await db.commit()

    if media_filename:
        await storage.delete(media_filename)

    logger.info("Content %s deleted by %s", content_id, requester.identity)
    return ResponseModel(code=200, message="Content deleted")


@router.post("/{content_id}/view", response_model=ResponseModel)
async def log_view(
    content_id: int,
    view_data: ViewCreate,
    ledger: ViewLedger = Depends(get_view_ledger),
):
    """
    Log that a viewer opened a content item (once per viewer)
    """
    ack = await ledger.record_view(content_id, view_data.viewerIdentity)

    return ResponseModel(
        code=200,
        message="View logged",
        data=ViewAckResponse(
            contentId=ack.content_id,
            viewerIdentity=ack.viewer_identity,
            created=ack.created
        )
    )


@router.get("/{content_id}/views", response_model=ResponseModel)
async def get_view_log(
    content_id: int,
    requester: Requester = Depends(get_requester),
    ledger: ViewLedger = Depends(get_view_ledger),
):
    """
    Who viewed a content item, newest first (admin only)
    """
    entries = await ledger.view_log(content_id, requester.is_admin)

    return ResponseModel(
        code=200,
        data=[
            ViewLogEntry(viewerIdentity=entry.viewer_identity, viewedAt=entry.viewed_at)
            for entry in entries
        ]
    )
