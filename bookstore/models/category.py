"""ORM model for book categories."""

from sqlalchemy import Column, DateTime, Integer, String, func

from bookstore.models.base import Base, utc_now


class Category(Base):
    """
    Book category. Books reference a category by foreign key; the category side
    holds no collection, book counts are queried through the catalog store.
    """

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(String(200), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)
