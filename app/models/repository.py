from sqlalchemy import Index
from sqlmodel import Field

from app.models.base import CreatedAtMixin, UUIDMixin


class Repository(UUIDMixin, CreatedAtMixin, table=True):
    """GitHub repository whose commits are persisted for timeline queries.

    Rows are written by the commit sync process; this service only reads them.
    """

    __tablename__ = "repositories"
    __table_args__ = (Index("ix_repositories_owner_name", "owner", "name", unique=True),)

    owner: str = Field(max_length=100, nullable=False)
    name: str = Field(max_length=100, nullable=False)
    display_name: str | None = Field(default=None, max_length=255)
