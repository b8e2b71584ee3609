from sqlalchemy import Column, Integer, ForeignKey, String, Numeric
from sqlalchemy.orm import relationship

from bistro.data.database import Base


class OrderLineModel(Base):
    """Snapshot pozycji menu w chwili zamowienia - nie referencja do items."""
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, nullable=True)  # informacyjnie, bez FK

    name = Column(String(120), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String(255), nullable=False, default="")
    quantity = Column(Integer, nullable=False)

    order = relationship("OrderModel", back_populates="items")
