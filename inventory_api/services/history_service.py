import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from inventory_api.config import get_settings
from inventory_api.models.inventory_history import InventoryHistory, utcnow

logger = logging.getLogger(__name__)

settings = get_settings()


class HistoryService:
    """
    Append-only log of stock-quantity changes.

    ``append`` only adds the entry to the session; the caller commits it
    together with the product change it records.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        product_id: int,
        old_quantity: int,
        new_quantity: int,
        user_info: Optional[str] = None,
    ) -> InventoryHistory:
        """
        Record a stock change for a product.

        Args:
            product_id: Product whose stock changed
            old_quantity: Stock before the change
            new_quantity: Stock after the change
            user_info: Who made the change; defaults to the configured user

        Returns:
            The pending history entry
        """
        entry = InventoryHistory(
            product_id=product_id,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
            change_date=utcnow(),
            user_info=user_info or settings.DEFAULT_USER_INFO,
        )
        self.db.add(entry)
        logger.info(
            f"Stock change for product #{product_id}: {old_quantity} -> {new_quantity} "
            f"by {entry.user_info}"
        )
        return entry

    def get_for_product(self, product_id: int) -> List[InventoryHistory]:
        """Return a product's history, most recent first. Unknown ids give []."""
        return (
            self.db.query(InventoryHistory)
            .filter(InventoryHistory.product_id == product_id)
            .order_by(InventoryHistory.change_date.desc(), InventoryHistory.id.desc())
            .all()
        )

    def delete_for_product(self, product_id: int) -> int:
        """Remove a product's history entries without committing."""
        return (
            self.db.query(InventoryHistory)
            .filter(InventoryHistory.product_id == product_id)
            .delete(synchronize_session=False)
        )
