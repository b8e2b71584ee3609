from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, Numeric, Float, DateTime, CheckConstraint

from bistro.data.database import Base


class ItemModel(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(30), nullable=False, index=True)

    price = Column(Numeric(10, 2), nullable=False)
    rating = Column(Float, nullable=False, default=0)
    hearts = Column(Integer, nullable=False, default=0)  # licznik popularnosci
    image_url = Column(String(255), nullable=True)  # nazwa pliku w UPLOAD_DIR

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_item_price"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_item_rating"),
    )
