from .base import Base
from .documents import Document
from .projects import Project
from .users import User

__all__ = [
    "Base",
    "Document",
    "Project",
    "User",
]
