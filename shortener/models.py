"""SQLAlchemy ORM models for the URL shortener service.

Data Model Layout
=================
::
    urls table
    ├─ id  (CHAR(6), PRIMARY KEY "urls_pkey")
    └─ url (TEXT NOT NULL, UNIQUE "urls_url_key")

How to Use
===========
**Step 1 — Import**::
    from shortener.models import UrlRecord

**Step 2 — Query a record**::
    result = await session.execute(select(UrlRecord.url).where(UrlRecord.id == "abc123"))
    url = result.scalar_one_or_none()

Key Behaviours
===============
- Constraint names are fixed so store errors can be classified by name.
- Records are never updated or deleted once written.
- The table is created idempotently on gateway startup.

Classes:
    Base:  SQLAlchemy declarative base.
    UrlRecord:  A short id paired with its target URL.
"""

from sqlalchemy import CHAR, PrimaryKeyConstraint, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

__all__ = ["Base", "UrlRecord", "PRIMARY_KEY_CONSTRAINT", "URL_UNIQUE_CONSTRAINT", "SHORT_ID_LENGTH"]

SHORT_ID_LENGTH = 6
PRIMARY_KEY_CONSTRAINT = "urls_pkey"
URL_UNIQUE_CONSTRAINT = "urls_url_key"


class Base(DeclarativeBase):
    pass


class UrlRecord(Base):
    __tablename__ = "urls"
    __table_args__ = (
        PrimaryKeyConstraint("id", name=PRIMARY_KEY_CONSTRAINT),
        UniqueConstraint("url", name=URL_UNIQUE_CONSTRAINT),
    )

    id: Mapped[str] = mapped_column(CHAR(SHORT_ID_LENGTH))
    url: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<UrlRecord(id='{self.id}', url='{self.url}')>"
