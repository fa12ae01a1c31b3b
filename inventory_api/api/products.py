import logging

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from inventory_api.database import get_db
from inventory_api.services.exceptions import (
    ConflictError,
    ImportFileError,
    NotFoundError,
    ValidationError,
)
from inventory_api.services.export_service import ExportService
from inventory_api.services.history_service import HistoryService
from inventory_api.services.import_service import ImportService
from inventory_api.services.product_service import ProductService
from inventory_api.schemas.history import HistoryEntryResponse, HistoryListResponse
from inventory_api.schemas.imports import ImportResult
from inventory_api.schemas.product import (
    CategoryListResponse,
    DeleteResponse,
    ProductCreate,
    ProductEnvelope,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


def _parse_id(raw: str) -> Optional[int]:
    """Product ids are integers; anything else can never match a product."""
    try:
        return int(raw)
    except ValueError:
        return None


def _require_id(raw: str) -> int:
    product_id = _parse_id(raw)
    if product_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {raw} not found"
        )
    return product_id


def _http_error(error: Exception) -> HTTPException:
    """Translate a service exception into the matching HTTP error."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.errors or str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="List products with optional name search, category filter and sorting."
)
def list_products(
    search: Optional[str] = Query(None, description="Case-insensitive search in product name"),
    category: Optional[str] = Query(None, description="Exact category, or 'All' for every category"),
    sort: str = Query("name", description="Sort field: name, category, brand or stock"),
    order: str = Query("asc", description="Sort order: asc or desc"),
    db: Session = Depends(get_db)
):
    """
    List products.

    Unknown sort fields fall back to **name** and unknown orders to **asc**.
    """
    service = ProductService(db)
    products = service.get_all(search=search, category=category, sort=sort, order=order)
    return ProductListResponse(products=[ProductResponse.model_validate(p) for p in products])


@router.get(
    "/categories",
    response_model=CategoryListResponse,
    summary="List categories",
    description="Distinct non-empty categories across all products."
)
def list_categories(db: Session = Depends(get_db)):
    service = ProductService(db)
    return CategoryListResponse(categories=service.list_categories())


@router.get(
    "/export",
    summary="Export products as CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}}
)
def export_products(db: Session = Depends(get_db)):
    """Download every product as a CSV attachment."""
    content = ExportService(db).export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="products.csv"'}
    )


@router.post(
    "/import",
    response_model=ImportResult,
    summary="Import products from CSV",
    description="Add products from an uploaded CSV file. Rows with an empty or existing name are skipped."
)
def import_products(
    file: Optional[UploadFile] = File(None, description="CSV file with a header row"),
    db: Session = Depends(get_db)
):
    """
    Bulk import.

    - **name** column is required, **unit**, **category**, **brand**,
      **stock**, **status** and **image** are optional
    - Returns the number of rows **added** and **skipped**
    """
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File is required"
        )

    try:
        content = file.file.read()
        service = ImportService(db)
        return service.import_csv(content)
    except ImportFileError as e:
        logger.warning(f"Rejected import file '{file.filename}': {e}")
        raise _http_error(e)
    finally:
        file.file.close()


@router.post(
    "",
    response_model=ProductEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a product. The name must be unique."
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db)
):
    """
    Create a new product.

    - **name**: Product name, unique (required)
    - **stock**: Initial quantity, must be non-negative (default 0)
    - **unit**, **category**, **brand**, **status**, **image**: optional
    """
    service = ProductService(db)
    try:
        product = service.create(product_data)
    except (ConflictError, ValidationError) as e:
        raise _http_error(e)
    return ProductEnvelope(product=ProductResponse.model_validate(product))


@router.get(
    "/{product_id}",
    response_model=ProductEnvelope,
    summary="Get product by ID"
)
def get_product(
    product_id: str,
    db: Session = Depends(get_db)
):
    service = ProductService(db)
    try:
        product = service.get_by_id(_require_id(product_id))
    except NotFoundError as e:
        raise _http_error(e)
    return ProductEnvelope(product=ProductResponse.model_validate(product))


@router.put(
    "/{product_id}",
    response_model=ProductEnvelope,
    summary="Update a product",
    description="Replace all product fields. A stock change is recorded in the product history."
)
def update_product(
    product_id: str,
    product_data: ProductUpdate,
    db: Session = Depends(get_db)
):
    """
    Update a product.

    Omitted optional fields are reset to empty. When **stock** differs from
    the stored value a history entry is written, attributed to
    **userInfo** (or "system").
    """
    service = ProductService(db)
    try:
        product = service.update(_require_id(product_id), product_data)
    except (NotFoundError, ConflictError, ValidationError) as e:
        raise _http_error(e)
    return ProductEnvelope(product=ProductResponse.model_validate(product))


@router.delete(
    "/{product_id}",
    response_model=DeleteResponse,
    summary="Delete a product",
    description="Delete a product and all of its history entries."
)
def delete_product(
    product_id: str,
    db: Session = Depends(get_db)
):
    """Delete a product."""
    service = ProductService(db)
    try:
        service.delete(_require_id(product_id))
    except NotFoundError as e:
        raise _http_error(e)
    return DeleteResponse(success=True)


@router.get(
    "/{product_id}/history",
    response_model=HistoryListResponse,
    summary="Get product stock history",
    description="Stock changes for a product, most recent first. Unknown products have no history."
)
def get_product_history(
    product_id: str,
    db: Session = Depends(get_db)
):
    parsed_id = _parse_id(product_id)
    if parsed_id is None:
        return HistoryListResponse(history=[])
    service = HistoryService(db)
    entries = service.get_for_product(parsed_id)
    return HistoryListResponse(history=[HistoryEntryResponse.model_validate(e) for e in entries])
