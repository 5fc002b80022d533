"""SQLAlchemy ORM models."""

from safekids.models.base import Base
from safekids.models.post import Post
from safekids.models.user import User

__all__ = ["Base", "Post", "User"]
