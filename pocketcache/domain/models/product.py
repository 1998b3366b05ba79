"""Domain models for catalog products stored in the cache."""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class Rating:
    """Average review score and number of reviews for a product."""
    rate: float = 0.0
    count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rating":
        return cls(rate=float(data["rate"]), count=int(data["count"]))


@dataclass
class Product:
    """Entity representing a single catalog item."""
    id: int
    title: str
    price: float
    description: str
    category: str
    image: str
    rating: Rating = field(default_factory=Rating)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Builds a Product from its decoded JSON form.

        Raises:
            KeyError, TypeError, ValueError: If the mapping does not match the schema.
            OverflowError: If a numeric field is infinite.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected an object for Product, got {type(data).__name__}")
        return cls(
            id=int(data["id"]),
            title=str(data["title"]),
            price=float(data["price"]),
            description=str(data["description"]),
            category=str(data["category"]),
            image=str(data["image"]),
            rating=Rating.from_dict(data.get("rating") or {"rate": 0.0, "count": 0}),
        )
