from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class ProductBase(BaseModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=255, description="Product name (unique)")
    unit: str = Field(default="", max_length=50, description="Unit of measure")
    category: str = Field(default="", max_length=100, description="Product category")
    brand: str = Field(default="", max_length=100, description="Brand or manufacturer")
    stock: int = Field(default=0, ge=0, description="On-hand quantity (must be non-negative)")
    status: str = Field(default="", max_length=50, description="Status label")
    image: str = Field(default="", max_length=1024, description="Image URL")

    @field_validator("unit", "category", "brand", "status", "image", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    pass


class ProductUpdate(ProductBase):
    """
    Schema for replacing a product's fields.

    Every mutable field is overwritten; omitted optional fields are reset
    to their defaults. ``user_info`` (or ``userInfo``) is recorded on the
    history entry written when the stock changes.
    """
    user_info: Optional[str] = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("user_info", "userInfo"),
        description="Who made the change (defaults to 'system')",
    )


class ProductResponse(BaseModel):
    """Schema for product response including all fields."""
    id: int
    name: str
    unit: Optional[str] = ""
    category: Optional[str] = ""
    brand: Optional[str] = ""
    stock: Optional[int] = 0
    status: Optional[str] = ""
    image: Optional[str] = ""

    model_config = ConfigDict(from_attributes=True)


class ProductEnvelope(BaseModel):
    """Single product wrapped in a ``product`` key."""
    product: ProductResponse


class ProductListResponse(BaseModel):
    """Schema for product list response."""
    products: list[ProductResponse]


class CategoryListResponse(BaseModel):
    """Distinct, non-empty categories."""
    categories: list[str]


class DeleteResponse(BaseModel):
    success: bool = True
