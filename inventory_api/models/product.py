from sqlalchemy import Column, Integer, String

from inventory_api.database import Base


class Product(Base):
    """
    Product model representing an inventory item.

    Attributes:
        id: Unique identifier for the product
        name: Product name (unique)
        unit: Unit of measure, e.g. "pcs" or "kg"
        category: Free-form category used for filtering
        brand: Brand or manufacturer
        stock: On-hand quantity
        status: Free-form status label
        image: Image URL
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    unit = Column(String(50), default="")
    category = Column(String(100), default="", index=True)
    brand = Column(String(100), default="")
    stock = Column(Integer, nullable=False, default=0)
    status = Column(String(50), default="")
    image = Column(String(1024), default="")

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"
