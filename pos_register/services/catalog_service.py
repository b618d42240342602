"""Catalog service - product lookup and pricebook loading."""
import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from pos_register.services.ledger_service import ProductInfo

logger = logging.getLogger(__name__)


def parse_pricebook(path: str) -> List[ProductInfo]:
    """
    Parse a tab-separated pricebook: code, name, price per row.

    Rows with fewer than 3 columns or an unparseable price are skipped and logged.
    A later row with the same code replaces the earlier one.
    """
    products: Dict[str, ProductInfo] = {}
    with open(path, newline='', encoding='utf-8') as fh:
        for lineno, columns in enumerate(csv.reader(fh, delimiter='\t'), start=1):
            if len(columns) < 3:
                continue
            code, name, price = (c.strip() for c in columns[:3])
            if not code:
                continue
            try:
                unit_price = Decimal(price)
            except InvalidOperation:
                logger.warning(f"[CATALOG] Line {lineno}: invalid price {price!r} for {code}, skipped")
                continue
            products[code] = ProductInfo(code=code, name=name, unit_price=unit_price)
    logger.info(f"[CATALOG] Parsed {len(products)} products from {path}")
    return list(products.values())


class PricebookCatalog:
    """In-memory catalog keyed by product code."""

    def __init__(self, products: Iterable[ProductInfo] = ()):
        self._products: Dict[str, ProductInfo] = {p.code: p for p in products}

    @classmethod
    def from_file(cls, path: str) -> 'PricebookCatalog':
        return cls(parse_pricebook(path))

    def get_product_by_code(self, code: str) -> Optional[ProductInfo]:
        return self._products.get(code)

    def has_product(self, code: str) -> bool:
        return code in self._products

    def all_products(self) -> List[ProductInfo]:
        return list(self._products.values())

    def __len__(self):
        return len(self._products)
