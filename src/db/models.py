# provide dataclass models, parsed from backend json

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def parse_timestamp(val) -> Optional[datetime]:
    """ISO-8601 string to an aware datetime; None when missing or malformed."""
    if not val:
        return None
    try:
        ts = datetime.fromisoformat(str(val))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _to_float(val) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return 0.0


def _to_int(val) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return 0


def _ref_id(val) -> str:
    if isinstance(val, dict):
        return str(val.get("_id", ""))
    return str(val or "")


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def is_final(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    def can_change_to(self, other: "OrderStatus") -> bool:
        """
        Orders only move forward along pending -> confirmed -> shipped ->
        delivered, or branch off to cancelled before delivery. Delivered and
        cancelled orders stay as they are.
        """
        if self.is_final or other is self:
            return False
        if other is OrderStatus.CANCELLED:
            return True
        return _PROGRESSION.index(other) > _PROGRESSION.index(self)


_PROGRESSION = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: float
    description: str = ""
    image: str = ""
    category: str = ""
    stock: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data) -> "Product":
        # orders may carry a bare product id instead of the populated document
        if isinstance(data, str):
            return cls(id=data, name="", price=0.0)
        return cls(
            id=str(data.get("_id", "")),
            name=data.get("name", "") or "",
            price=_to_float(data.get("price")),
            description=data.get("description", "") or "",
            image=data.get("image", "") or "",
            category=data.get("category", "") or "",
            stock=_to_int(data.get("stock")),
            created_at=parse_timestamp(data.get("createdAt")),
        )


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=str(data.get("_id", "")),
            name=data.get("name", "") or "",
            email=data.get("email", "") or "",
            role=data.get("role", "user") or "user",
        )


@dataclass(frozen=True)
class CartItem:
    id: str
    user_id: str
    product: Product
    quantity: int

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CartItem":
        return cls(
            id=str(data.get("_id", "")),
            user_id=str(data.get("userId", "")),
            product=Product.from_json(data.get("product") or {}),
            quantity=_to_int(data.get("quantity")),
        )


@dataclass(frozen=True)
class ShippingInfo:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    zip_code: str = ""
    country: str = "Bangladesh"

    def missing_fields(self) -> List[str]:
        return [f.name for f in fields(self) if not str(getattr(self, f.name)).strip()]

    def one_line(self) -> str:
        parts = [
            f"{self.first_name} {self.last_name}".strip(),
            self.address,
            self.city,
            self.zip_code,
            self.country,
        ]
        return ", ".join(p for p in parts if p)

    def to_json(self) -> Dict[str, str]:
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "zipCode": self.zip_code,
            "country": self.country,
        }

    @classmethod
    def from_json(cls, data) -> Optional["ShippingInfo"]:
        if not data:
            return None
        if isinstance(data, str):
            return cls(address=data, country="")
        return cls(
            first_name=data.get("firstName", "") or "",
            last_name=data.get("lastName", "") or "",
            email=data.get("email", "") or "",
            phone=data.get("phone", "") or "",
            address=data.get("address", "") or "",
            city=data.get("city", "") or "",
            zip_code=data.get("zipCode", "") or "",
            country=data.get("country", "") or "",
        )


@dataclass(frozen=True)
class OrderLine:
    product: Product
    quantity: int

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    lines: Tuple[OrderLine, ...]
    total_amount: float
    status: OrderStatus
    created_at: Optional[datetime] = None
    shipping_address: Optional[ShippingInfo] = None
    payment_method: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Order":
        try:
            status = OrderStatus(data.get("status", "pending"))
        except ValueError:
            status = OrderStatus.PENDING
        return cls(
            id=str(data.get("_id", "")),
            user_id=_ref_id(data.get("user")),
            lines=tuple(
                OrderLine(
                    product=Product.from_json(line.get("product") or {}),
                    quantity=_to_int(line.get("quantity")),
                )
                for line in data.get("products") or []
            ),
            total_amount=_to_float(data.get("totalAmount")),
            status=status,
            created_at=parse_timestamp(data.get("createdAt")),
            shipping_address=ShippingInfo.from_json(data.get("shippingAddress")),
            payment_method=data.get("paymentMethod") or None,
        )


@dataclass(frozen=True)
class ProductDraft:
    """Admin-side product payload; a full replacement of the stored product."""

    name: str
    price: float
    description: str = ""
    category: str = ""
    stock: int = 0
    image: str = ""

    def problems(self) -> List[str]:
        issues = []
        if not self.name.strip():
            issues.append("Name is required.")
        if self.price < 0:
            issues.append("Price cannot be negative.")
        if self.stock < 0:
            issues.append("Stock cannot be negative.")
        return issues

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "category": self.category,
            "stock": self.stock,
            "image": self.image,
        }

    @classmethod
    def from_product(cls, product: Product) -> "ProductDraft":
        return cls(
            name=product.name,
            price=product.price,
            description=product.description,
            category=product.category,
            stock=product.stock,
            image=product.image,
        )
