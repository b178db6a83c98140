from .user import User
from .content import Content
from .content_view import ContentView

__all__ = [
    "User",
    "Content",
    "ContentView",
]
