"""ProductSource implementation reading the catalog from a local JSON file.

The file holds a JSON array of product objects in the same shape the cache
stores them (``id``, ``title``, ``price``, ``description``, ``category``,
``image``, ``rating: {rate, count}``).
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from pocketcache.domain.interfaces.product_source import ProductSource, ProductSourceError
from pocketcache.domain.models.product import Product

logger = logging.getLogger(__name__)


class JsonProductSource(ProductSource):
    """Loads products from a JSON file on every fetch."""

    def __init__(self, products_file: Union[str, Path]):
        self.products_file = Path(products_file).expanduser()

    def get_all_products(self) -> List[Product]:
        try:
            with open(self.products_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError, RecursionError) as e:
            logger.error(f"Failed to read product catalog {self.products_file}: {e}")
            raise ProductSourceError(f"Cannot read product catalog {self.products_file}: {e}") from e

        if not isinstance(data, list):
            raise ProductSourceError(f"Product catalog {self.products_file} must contain a JSON array.")
        try:
            products = [Product.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise ProductSourceError(f"Invalid product entry in {self.products_file}: {e}") from e
        logger.debug(f"Fetched {len(products)} products from {self.products_file}")
        return products

    def get_product(self, product_id: int) -> Optional[Product]:
        for product in self.get_all_products():
            if product.id == product_id:
                return product
        return None
