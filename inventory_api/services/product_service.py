from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from pydantic import BaseModel, ValidationError as SchemaValidationError
from typing import List, Optional, Type, Union
import logging

from inventory_api.models.product import Product
from inventory_api.schemas.product import ProductBase, ProductCreate, ProductUpdate
from inventory_api.services.exceptions import ConflictError, NotFoundError, ValidationError
from inventory_api.services.history_service import HistoryService
from inventory_api.utils.cache import cache_service

logger = logging.getLogger(__name__)

SORT_FIELDS = ("name", "category", "brand", "stock")
DEFAULT_SORT = "name"
ALL_CATEGORIES = "All"
MUTABLE_FIELDS = ("name", "unit", "category", "brand", "stock", "status", "image")


def resolve_sort(sort: Optional[str], order: Optional[str]) -> tuple[str, bool]:
    """
    Map raw sort/order inputs onto the allow-list.

    Returns:
        Tuple of (column name, descending flag). Unknown fields fall back
        to "name" and unknown orders to ascending.
    """
    field = sort if sort in SORT_FIELDS else DEFAULT_SORT
    descending = (order or "").lower() == "desc"
    return field, descending


class ProductService:
    """
    Service class for Product CRUD operations.

    This service handles:
    - Listing products with search, category filter and sorting
    - Creating products with unique names
    - Full-replace updates, logging stock changes to the history
    - Deleting products together with their history
    - Invalidating the cached category list on writes
    """

    CACHE_PREFIX = "categories"
    CACHE_KEY = "all"

    def __init__(self, db: Session):
        self.db = db
        self.history = HistoryService(db)

    def get_all(
        self,
        search: str = None,
        category: str = None,
        sort: str = DEFAULT_SORT,
        order: str = "asc",
    ) -> List[Product]:
        """
        List products matching the filters.

        Args:
            search: Case-insensitive substring of the product name
            category: Exact category; None, "" or "All" disables the filter
            sort: One of name, category, brand, stock (else name)
            order: asc or desc (else asc)
        """
        query = self.db.query(Product)

        if search:
            query = query.filter(Product.name.icontains(search, autoescape=True))

        if category and category != ALL_CATEGORIES:
            query = query.filter(Product.category == category)

        field, descending = resolve_sort(sort, order)
        column = getattr(Product, field)
        if descending:
            query = query.order_by(column.desc(), Product.id.desc())
        else:
            query = query.order_by(column.asc(), Product.id.asc())

        return query.all()

    def list_categories(self) -> List[str]:
        """Return distinct non-empty categories, using the cache when possible."""
        generation = cache_service.get_generation(self.CACHE_PREFIX)
        if generation is None:
            return self._load_categories()

        key = f"{self.CACHE_KEY}:{generation}"
        cached = cache_service.get(self.CACHE_PREFIX, key)
        if cached is not None:
            return cached

        categories = self._load_categories()
        cache_service.set(self.CACHE_PREFIX, key, categories)
        return categories

    def _load_categories(self) -> List[str]:
        rows = (
            self.db.query(Product.category)
            .filter(Product.category.isnot(None), Product.category != "")
            .distinct()
            .order_by(Product.category)
            .all()
        )
        return [row[0] for row in rows]

    def get_by_id(self, product_id: int) -> Product:
        """
        Get a product by ID.

        Raises:
            NotFoundError: If the product doesn't exist
        """
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return product

    def get_by_name(self, name: str) -> Optional[Product]:
        """Exact, case-sensitive name lookup."""
        return self.db.query(Product).filter(Product.name == name).first()

    def create(self, product_data: Union[ProductCreate, dict]) -> Product:
        """
        Create a new product.

        Args:
            product_data: Product creation data (schema or plain mapping)

        Returns:
            Created product instance

        Raises:
            ValidationError: If the name is empty or the stock is invalid
            ConflictError: If a product with this name already exists
        """
        data = self._coerce(product_data, ProductCreate)

        if self.get_by_name(data.name):
            raise ConflictError("Product name must be unique")

        product = Product(**data.model_dump(include=set(MUTABLE_FIELDS)))
        self.db.add(product)
        self._commit()
        self.db.refresh(product)

        logger.info(f"Product #{product.id} '{product.name}' created with stock {product.stock}")
        return product

    def update(self, product_id: int, product_data: Union[ProductUpdate, dict]) -> Product:
        """
        Replace a product's fields, logging a history entry when stock changes.

        The product row is locked for the duration of the transaction, and
        the history entry and field changes are committed together.

        Raises:
            ValidationError: If the name is empty or the stock is invalid
            NotFoundError: If the product doesn't exist
            ConflictError: If another product already has the name
        """
        data = self._coerce(product_data, ProductUpdate)

        product = (
            self.db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .first()
        )
        if not product:
            self.db.rollback()
            raise NotFoundError(f"Product with ID {product_id} not found")

        name_owner = (
            self.db.query(Product.id)
            .filter(Product.name == data.name, Product.id != product_id)
            .first()
        )
        if name_owner:
            self.db.rollback()
            raise ConflictError("Product name must be unique")

        old_stock = product.stock
        if old_stock != data.stock:
            self.history.append(product_id, old_stock, data.stock, data.user_info)

        for field in MUTABLE_FIELDS:
            setattr(product, field, getattr(data, field))

        self._commit()
        self.db.refresh(product)

        logger.info(f"Product #{product_id} updated")
        return product

    def delete(self, product_id: int) -> bool:
        """
        Delete a product and its history entries.

        Raises:
            NotFoundError: If the product doesn't exist
        """
        product = self.get_by_id(product_id)

        removed = self.history.delete_for_product(product_id)
        self.db.delete(product)
        self._commit()

        logger.info(f"Product #{product_id} deleted along with {removed} history entries")
        return True

    def invalidate_categories(self) -> None:
        """Orphan the cached category list; call only after the write is committed."""
        cache_service.bump_generation(self.CACHE_PREFIX)

    def _coerce(self, product_data, schema: Type[ProductBase]) -> ProductBase:
        """Validate a plain mapping against the schema; schema instances pass through."""
        if isinstance(product_data, schema):
            return product_data
        if isinstance(product_data, BaseModel):
            product_data = product_data.model_dump(by_alias=False)
        try:
            return schema.model_validate(product_data)
        except SchemaValidationError as e:
            raise ValidationError(
                "Invalid product data",
                errors=e.errors(include_url=False),
            )

    def _commit(self) -> None:
        """Commit the session, turning a unique-name violation into ConflictError."""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error writing product: {e}")
            raise ConflictError("Product name must be unique")
        except Exception:
            self.db.rollback()
            raise
        self.invalidate_categories()
