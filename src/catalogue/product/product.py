"""Product records read by ordering and reporting.

Product and category management live in the catalogue service; the ordering
engine only reads a product's current name, price and stock flag, and the
dashboard counts products by creation date.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Float, String, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from shared.db import Base, utcnow


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(String(2000), default="")
    price: Mapped[float] = mapped_column(Float)
    image_url: Mapped[str] = mapped_column(String(500), default="")
    out_of_stock: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class ProductCatalog:
    """Read side of the catalogue."""

    def __init__(self, session: Session):
        self.session = session

    def find(self, product_id: str) -> Product | None:
        return self.session.get(Product, product_id)

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(Product))

    def count_created_between(self, start: datetime, end: datetime) -> int:
        stmt = select(func.count()).select_from(Product).where(Product.created_at >= start, Product.created_at <= end)
        return self.session.scalar(stmt)

    def add(self, name: str, price: float, out_of_stock: bool = False, **fields) -> Product:
        """Insert a product. Used by seeding; catalogue writes belong to the catalogue service."""
        product = Product(name=name, price=price, out_of_stock=out_of_stock, **fields)
        self.session.add(product)
        self.session.commit()
        return product
