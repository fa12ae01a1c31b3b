from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from inventory_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryHistory(Base):
    """
    Audit record of a stock-quantity change for one product.

    Rows are only written when an update changes a product's stock and
    are never modified afterwards.
    """
    __tablename__ = "inventory_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    old_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    change_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    user_info = Column(String(255), nullable=False, default="system")

    def __repr__(self):
        return (
            f"<InventoryHistory(id={self.id}, product_id={self.product_id}, "
            f"{self.old_quantity} -> {self.new_quantity})>"
        )
