# bistro/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from bistro.domain.enums import Category, PaymentMethod, PaymentStatus, OrderStatus


# ---- users ----

class RegisterIn(BaseModel):
    """Pola sa opcjonalne, walidacje robi UserService zeby zwrocic wlasny komunikat."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    is_admin: bool = False

    model_config = ConfigDict(from_attributes=True)


class AuthOut(BaseModel):
    success: bool = True
    token: str
    user: UserRead


# ---- items ----

class ItemOut(BaseModel):
    id: int
    name: str
    description: str
    category: Category
    price: Decimal
    rating: float
    hearts: int
    image_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    category: Optional[Category] = None
    price: Optional[Decimal] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    hearts: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(extra="forbid")


class ItemListOut(BaseModel):
    success: bool = True
    data: List[ItemOut]


class ItemCreatedOut(BaseModel):
    success: bool = True
    message: str
    item: ItemOut


# ---- cart ----

class CartAddIn(BaseModel):
    item_id: int = Field(..., gt=0)
    quantity: int = 1  # < 1 jest przycinane do 1 w serwisie


class CartUpdateIn(BaseModel):
    quantity: int


class CartItemSummary(BaseModel):
    id: int
    name: str
    price: Decimal
    image_url: Optional[str] = None


class CartEntryOut(BaseModel):
    """Jedyny kanoniczny ksztalt wpisu koszyka zwracany przez API."""

    id: int
    item_id: int
    quantity: int
    item: CartItemSummary


class CartOut(BaseModel):
    success: bool = True
    cart_items: List[CartEntryOut]
    total_amount: Decimal
    total_items: int


class CartDeletedOut(BaseModel):
    success: bool = True
    id: int
    message: str


class CartClearedOut(BaseModel):
    success: bool = True
    message: str
    deleted_count: int


# ---- orders ----

class OrderLineIn(BaseModel):
    item_id: int = Field(..., gt=0)
    quantity: int


class OrderCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    zipcode: str = Field(..., min_length=1)
    payment_method: PaymentMethod
    items: List[OrderLineIn] = []

    # wartosci liczone po stronie klienta - serwer liczy je sam
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None


class OrderLineOut(BaseModel):
    id: int
    item_id: Optional[int] = None
    name: str
    price: Decimal
    image_url: str
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    user_id: int
    first_name: str
    last_name: str
    phone: str
    email: str
    address: str
    city: str
    zipcode: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    status: OrderStatus
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    session_id: Optional[str] = None
    expected_delivery: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderLineOut]

    model_config = ConfigDict(from_attributes=True)


class OrderCreatedOut(BaseModel):
    order: OrderOut
    checkout_url: Optional[str] = None


class ConfirmPaymentIn(BaseModel):
    session_id: Optional[str] = None


class OrderUpdate(BaseModel):
    """Wlasciciel moze poprawic tylko dane kontaktowe i adres."""

    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=3)
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = Field(None, min_length=1)
    zipcode: Optional[str] = Field(None, min_length=1)

    model_config = ConfigDict(extra="forbid")


class OrderAdminUpdate(OrderUpdate):
    status: Optional[OrderStatus] = None
    expected_delivery: Optional[datetime] = None
