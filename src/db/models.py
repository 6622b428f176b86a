# provide dataclass models

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Literal, Optional, Union

Role = Literal["admin", "seller"]
ROLES = ("admin", "seller")

Number = Union[int, float]


def _is_number(val: Any) -> bool:
    """True for real ints and finite floats; bools, NaN and infinities do not count."""
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return False
    try:
        return math.isfinite(val)
    except OverflowError:  # int too large for a float
        return False


def _finite(val: float) -> float:
    if not math.isfinite(val):
        raise ValueError(f"Non-finite number {val!r}")
    return val


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    stock: int
    image_url: str


@dataclass(frozen=True)
class CartItem:
    product_id: str
    name: str
    price: float  # unit price at the time the product was added
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CartItem:
        """Raises TypeError/KeyError/ValueError on malformed input, including
        the Infinity and NaN that json.loads lets through."""
        return cls(
            product_id=str(data["productId"]),
            name=str(data["name"]),
            price=_finite(float(data["price"])),
            quantity=int(_finite(float(data["quantity"]))),
        )


@dataclass(frozen=True)
class User:
    username: str
    role: Role
    name: str
    password: Optional[str] = None  # None for session projections

    def without_password(self) -> User:
        return replace(self, password=None)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.password is None:
            del data["password"]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> User:
        role = data["role"]
        if role not in ROLES:
            raise ValueError(f"Unknown role {role!r}")
        return cls(
            username=str(data["username"]),
            role=role,
            name=str(data["name"]),
            password=data.get("password"),
        )


@dataclass(frozen=True)
class ProductDraft:
    """Buffer behind the "new product" form. None means "not a number"."""

    name: str = ""
    price: Optional[Number] = None
    stock: Optional[Number] = None
    image_url: str = ""

    def is_valid(self) -> bool:
        return (
            self.name.strip() != ""
            and _is_number(self.price)
            and self.price > 0
            and _is_number(self.stock)
            and self.stock >= 0
            and self.image_url.strip() != ""
        )


@dataclass(frozen=True)
class SellerDraft:
    name: str = ""
    username: str = ""

    def is_valid(self) -> bool:
        return self.name.strip() != "" and self.username.strip() != ""
