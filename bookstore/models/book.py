"""ORM model for catalog books."""

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from bookstore.models.base import Base, utc_now


class Book(Base):
    """Catalog entry. category_id is a plain foreign key (one-directional ownership)."""

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False, index=True)
    author = Column(String(100), nullable=False, index=True)
    isbn = Column(String(20), nullable=True, unique=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    publication_date = Column(Date, nullable=True)
    publisher = Column(String(100), nullable=True)
    page_count = Column(Integer, nullable=True)
    image_url = Column(String(500), nullable=True)
    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    # Many-to-one only; Category keeps no collection of books.
    category = relationship("Category", lazy="joined")

    @property
    def in_stock(self) -> bool:
        return (self.stock or 0) > 0
