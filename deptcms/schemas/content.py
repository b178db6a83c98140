"""
Content schemas
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime


class ContentUpdate(BaseModel):
    """Update content request (title and body only)"""
    title: Optional[str] = Field(None, max_length=255, description="Title")
    body: Optional[str] = Field(None, description="Body text")


class ViewCreate(BaseModel):
    """Log a content view"""
    viewerIdentity: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("viewerIdentity", "viewer_email"),
        description="Viewer email",
    )


class MediaInfo(BaseModel):
    """Attached media"""
    filename: str
    originalName: Optional[str] = None
    mimeType: Optional[str] = None
    url: str


class ContentResponse(BaseModel):
    """Content item"""
    id: int
    title: str
    body: str
    author: str
    departments: List[str]
    media: Optional[MediaInfo] = None
    viewCount: int = 0
    createdAt: datetime
    updatedAt: datetime

    model_config = ConfigDict(from_attributes=True)


class ViewAckResponse(BaseModel):
    """View logging result"""
    contentId: int
    viewerIdentity: str
    created: bool


class ViewLogEntry(BaseModel):
    """One view log row"""
    viewerIdentity: str
    viewedAt: datetime
