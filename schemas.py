"""
Database Schemas for the storefront

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name.
"""
from enum import Enum
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

USER_ROLE = 0
ADMIN_ROLE = 1


class OrderStatus(str, Enum):
    NOT_PROCESS = "Not Process"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "delivered"
    CANCEL = "cancel"

    @classmethod
    def values(cls) -> List[str]:
        return [s.value for s in cls]


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr
    password: str = Field(..., description="bcrypt digest, never plaintext")
    phone: str
    address: Any = Field(..., description="Free-form address value")
    answer: str = Field(..., description="Security answer for password reset")
    role: Literal[0, 1] = USER_ROLE


class Order(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    products: List[str]
    buyer: str
    payment: Dict[str, Any] = {}
    status: OrderStatus = OrderStatus.NOT_PROCESS.value


class Category(BaseModel):
    name: str
    slug: str


class Product(BaseModel):
    name: str
    slug: str
    description: str
    price: float = Field(..., ge=0)
    category: str
    quantity: int = Field(..., ge=0)
    shipping: bool = False
