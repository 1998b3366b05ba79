"""Interface for the remote product catalog the cache sits in front of."""

import abc
from typing import List, Optional

from ..models.product import Product


class ProductSourceError(Exception):
    """Raised when products cannot be fetched from the source."""


class ProductSource(abc.ABC):
    """Abstract Base Class for fetching products on a cache miss."""

    @abc.abstractmethod
    def get_all_products(self) -> List[Product]:
        """Fetches every product in the catalog.

        Raises:
            ProductSourceError: If the catalog is unavailable.
        """
        pass

    @abc.abstractmethod
    def get_product(self, product_id: int) -> Optional[Product]:
        """Fetches one product, or None if the catalog has no such id.

        Raises:
            ProductSourceError: If the catalog is unavailable.
        """
        pass
