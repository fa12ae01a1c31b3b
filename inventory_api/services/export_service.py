from sqlalchemy.orm import Session

from inventory_api.models.product import Product

EXPORT_COLUMNS = ("id", "name", "unit", "category", "brand", "stock", "status", "image")
_NEEDS_QUOTES = (",", '"', "\n", "\r")


def quote_field(value) -> str:
    """Stringify a value, quoting it when it holds a comma, quote or newline."""
    text = "" if value is None else str(value)
    if any(ch in text for ch in _NEEDS_QUOTES):
        return '"' + text.replace('"', '""') + '"'
    return text


class ExportService:
    """Serialise the product table to CSV."""

    def __init__(self, db: Session):
        self.db = db

    def export_csv(self) -> str:
        """
        Render every product as CSV in the store's natural row order.

        Null text fields and a null stock are written as empty cells.
        """
        lines = [",".join(EXPORT_COLUMNS)]
        for product in self.db.query(Product).all():
            lines.append(
                ",".join(quote_field(getattr(product, column)) for column in EXPORT_COLUMNS)
            )
        return "\n".join(lines) + "\n"
