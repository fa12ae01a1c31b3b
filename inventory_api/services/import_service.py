import csv
import io
import logging
from typing import Iterable, Iterator, List, Tuple, Union

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from inventory_api.models.product import Product
from inventory_api.schemas.imports import ImportResult, ImportRow
from inventory_api.services.exceptions import ImportFileError
from inventory_api.services.product_service import ProductService

logger = logging.getLogger(__name__)

REQUIRED_COLUMN = "name"
ADDED = "added"
SKIPPED = "skipped"


def parse_csv(content: Union[bytes, str]) -> List[ImportRow]:
    """
    Parse a whole CSV document into import rows.

    The header row names the columns; "name" is required and unknown
    columns are ignored. An empty document yields no rows.

    Raises:
        ImportFileError: If the bytes aren't UTF-8, the CSV is malformed,
            or the header has no "name" column
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ImportFileError(f"File is not valid UTF-8 text: {e}")

    if not content.strip():
        return []

    reader = csv.DictReader(io.StringIO(content, newline=""), strict=True)
    try:
        fieldnames = [(f or "").strip() for f in (reader.fieldnames or [])]
        if REQUIRED_COLUMN not in fieldnames:
            raise ImportFileError(f"Missing required column '{REQUIRED_COLUMN}'")
        reader.fieldnames = fieldnames

        return [
            ImportRow.model_validate({k: v for k, v in record.items() if k in ImportRow.model_fields})
            for record in reader
        ]
    except csv.Error as e:
        raise ImportFileError(f"Malformed CSV at line {reader.line_num}: {e}")


class ImportService:
    """
    Bulk product import from CSV.

    Rows are inserted one at a time in file order and committed as they
    go, so duplicate checks see products added earlier in the same run.
    A failure part-way through keeps the rows already committed.
    """

    def __init__(self, db: Session):
        self.db = db
        self.products = ProductService(db)

    def iter_import(self, rows: Iterable[ImportRow]) -> Iterator[Tuple[str, ImportRow]]:
        """
        Import rows lazily, yielding ("added" | "skipped", row) per row.

        Stop consuming the iterator to stop the import; rows already
        yielded as added stay committed.
        """
        for row in rows:
            if not row.name:
                yield SKIPPED, row
                continue

            if self.products.get_by_name(row.name):
                yield SKIPPED, row
                continue

            self.db.add(Product(**row.model_dump()))
            try:
                self.db.commit()
            except IntegrityError:
                # Inserted concurrently by another writer
                self.db.rollback()
                yield SKIPPED, row
                continue

            yield ADDED, row

    def import_rows(self, rows: Iterable[ImportRow]) -> ImportResult:
        """Import all rows and return the added/skipped tally."""
        result = ImportResult()
        try:
            for outcome, _row in self.iter_import(rows):
                if outcome == ADDED:
                    result.added += 1
                else:
                    result.skipped += 1
        except Exception:
            self.db.rollback()
            logger.error(
                f"Import aborted after {result.added} added, {result.skipped} skipped"
            )
            raise
        finally:
            if result.added:
                self.products.invalidate_categories()

        logger.info(f"Import finished: {result.added} added, {result.skipped} skipped")
        return result

    def import_csv(self, content: Union[bytes, str]) -> ImportResult:
        """
        Parse a CSV document and import its rows.

        The document is parsed completely before anything is inserted, so
        an unreadable file inserts nothing.
        """
        rows = parse_csv(content)
        return self.import_rows(rows)
