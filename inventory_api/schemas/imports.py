import re

from pydantic import BaseModel, field_validator

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_stock(value) -> int:
    """
    Parse a stock cell the lenient way spreadsheets expect.

    The leading integer is used ("7 boxes" -> 7, "-3" -> -3); anything
    without one ("", "abc", None) becomes 0. Negative values are kept.
    """
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


class ImportRow(BaseModel):
    """
    One parsed CSV data row.

    Missing or empty text cells become "", stock goes through parse_stock.
    """
    name: str = ""
    unit: str = ""
    category: str = ""
    brand: str = ""
    stock: int = 0
    status: str = ""
    image: str = ""

    @field_validator("name", "unit", "category", "brand", "status", "image", mode="before")
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("stock", mode="before")
    @classmethod
    def lenient_stock(cls, value):
        return parse_stock(value)


class ImportResult(BaseModel):
    """Outcome counts of one import run."""
    added: int = 0
    skipped: int = 0
