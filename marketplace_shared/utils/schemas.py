"""
Shared Pydantic schemas used across the application.

Decimal columns (prices, totals, ratings) are exposed as plain numbers:
the `Money` annotation converts stored Decimal values to float on every
read path.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, Field

from marketplace_shared.config.constants import Limits
from marketplace_shared.utils.validators import to_float


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["customer", "restaurant_owner", "admin"]
OrderStatus = Literal["created", "confirmed", "preparing", "out_for_delivery", "delivered", "canceled"]
PaymentStatus = Literal["pending", "completed", "failed", "refunded"]

Money = Annotated[float, BeforeValidator(to_float)]

NameStr = Annotated[str, Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)]
PositivePrice = Annotated[float, Field(gt=0, le=Limits.MAX_PRICE)]
PriceModifier = Annotated[float, Field(ge=-Limits.MAX_PRICE, le=Limits.MAX_PRICE)]
Quantity = Annotated[int, Field(ge=Limits.MIN_QUANTITY, le=Limits.MAX_QUANTITY)]
ReviewRating = Annotated[int, Field(ge=Limits.MIN_REVIEW_RATING, le=Limits.MAX_REVIEW_RATING)]


# =============================================================================
# User Schemas
# =============================================================================


class UserOutput(BaseModel):
    id: int
    email: str
    name: str
    phone: str | None = None
    role: Role
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Restaurant Schemas
# =============================================================================


class RestaurantCreate(BaseModel):
    """Restaurant creation body. owner_id defaults to the caller."""

    owner_id: int | None = None
    name: NameStr
    description: str | None = None
    address: NameStr
    phone: Annotated[str, Field(min_length=1, max_length=50)]
    image_url: str | None = None


class RestaurantUpdate(BaseModel):
    name: NameStr | None = None
    description: str | None = None
    address: NameStr | None = None
    phone: Annotated[str, Field(min_length=1, max_length=50)] | None = None
    image_url: str | None = None


class RestaurantOutput(BaseModel):
    id: int
    owner_id: int
    name: str
    description: str | None = None
    address: str
    phone: str
    image_url: str | None = None
    is_active: bool
    rating: Money | None = None
    total_reviews: int
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# =============================================================================
# Menu Schemas
# =============================================================================


class MenuCategoryCreate(BaseModel):
    name: NameStr
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True


class MenuCategoryUpdate(BaseModel):
    name: NameStr | None = None
    description: str | None = None
    sort_order: int | None = None
    is_active: bool | None = None


class MenuCategoryOutput(BaseModel):
    id: int
    restaurant_id: int
    name: str
    description: str | None = None
    sort_order: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MenuItemCreate(BaseModel):
    category_id: int
    name: NameStr
    description: str | None = None
    price: PositivePrice
    image_url: str | None = None
    is_available: bool = True
    sort_order: int = 0


class MenuItemUpdate(BaseModel):
    category_id: int | None = None
    name: NameStr | None = None
    description: str | None = None
    price: PositivePrice | None = None
    image_url: str | None = None
    is_available: bool | None = None
    sort_order: int | None = None


class MenuItemAvailabilityUpdate(BaseModel):
    is_available: bool


class MenuItemOutput(BaseModel):
    id: int
    restaurant_id: int
    category_id: int
    name: str
    description: str | None = None
    price: Money
    image_url: str | None = None
    is_available: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class MenuItemOptionCreate(BaseModel):
    name: NameStr
    price_modifier: PriceModifier = 0.0
    is_required: bool = False
    sort_order: int = 0


class MenuItemOptionUpdate(BaseModel):
    name: NameStr | None = None
    price_modifier: PriceModifier | None = None
    is_required: bool | None = None
    sort_order: int | None = None


class MenuItemOptionOutput(BaseModel):
    id: int
    menu_item_id: int
    name: str
    price_modifier: Money
    is_required: bool
    sort_order: int
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Cart Schemas
# =============================================================================


class CartItemCreate(BaseModel):
    menu_item_id: int
    quantity: Quantity = 1
    selected_options: list[int] | None = None


class CartItemUpdate(BaseModel):
    quantity: Quantity


class CartItemOutput(BaseModel):
    id: int
    user_id: int
    menu_item_id: int
    quantity: int
    selected_options: list[int] | None = None
    total_price: Money
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Order Schemas
# =============================================================================


class OrderCreate(BaseModel):
    restaurant_id: int
    delivery_address_id: int
    notes: Annotated[str, Field(max_length=Limits.MAX_NOTES_LENGTH)] | None = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    estimated_delivery_time: datetime | None = None


class OrderItemOutput(BaseModel):
    id: int
    order_id: int
    menu_item_id: int
    quantity: int
    unit_price: Money
    selected_options: list[int] | None = None
    total_price: Money
    created_at: datetime

    class Config:
        from_attributes = True


class OrderOutput(BaseModel):
    id: int
    user_id: int
    restaurant_id: int
    delivery_address_id: int
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: Money
    delivery_fee: Money
    tax_amount: Money
    total_amount: Money
    notes: str | None = None
    estimated_delivery_time: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class OrderTrackingStepOutput(BaseModel):
    key: OrderStatus
    label: str
    description: str
    step: int
    is_completed: bool
    is_current: bool


class OrderTrackingOutput(BaseModel):
    order_id: int
    status: OrderStatus
    step: int | None = None
    total_steps: int
    progress_percentage: float
    estimated_delivery_text: str
    is_canceled: bool
    steps: list[OrderTrackingStepOutput]


# =============================================================================
# Payment Schemas
# =============================================================================


class PaymentCreate(BaseModel):
    order_id: int
    payment_method: Annotated[str, Field(min_length=1, max_length=Limits.MAX_PAYMENT_METHOD_LENGTH)]
    # Defaults to the order total
    amount: PositivePrice | None = None


class PaymentOutput(BaseModel):
    id: int
    order_id: int
    amount: Money
    payment_method: str
    status: PaymentStatus
    transaction_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# =============================================================================
# Review Schemas
# =============================================================================


class ReviewCreate(BaseModel):
    restaurant_id: int
    order_id: int | None = None
    rating: ReviewRating
    comment: Annotated[str, Field(max_length=Limits.MAX_COMMENT_LENGTH)] | None = None


class ReviewModerate(BaseModel):
    is_approved: bool


class ReviewOutput(BaseModel):
    id: int
    user_id: int
    restaurant_id: int
    order_id: int | None = None
    rating: int
    comment: str | None = None
    is_approved: bool
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
