from app.models.commit import Commit
from app.models.repository import Repository

__all__ = [
    "Commit",
    "Repository",
]
