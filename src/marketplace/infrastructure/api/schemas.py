"""Pydantic request schemas for the HTTP API.

These are external contracts (anti-corruption layer), separate from the
application DTOs.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class CartItemSchema(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    price: Decimal = Field(ge=0)


class ShippingAddressSchema(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip: str = Field(min_length=1)
    country: str = Field(min_length=1)


class PlaceOrderRequest(BaseModel):
    items: list[CartItemSchema] = Field(min_length=1)
    shipping_address: ShippingAddressSchema
    payment_method: Literal["card", "cod"]
    subtotal: Decimal = Field(ge=0)
    shipping_fee: Decimal = Field(ge=0)
    tax: Decimal = Field(ge=0)
    total: Decimal = Field(ge=0)
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": 1, "quantity": 2, "price": "100.00"}],
                    "shipping_address": {
                        "name": "Somchai",
                        "email": "somchai@example.com",
                        "phone": "0812345678",
                        "address": "1 Sukhumvit Rd",
                        "city": "Bangkok",
                        "state": "Bangkok",
                        "zip": "10110",
                        "country": "TH",
                    },
                    "payment_method": "card",
                    "subtotal": "200.00",
                    "shipping_fee": "20.00",
                    "tax": "8.00",
                    "total": "228.00",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: Literal["pending", "processing", "shipped", "delivered", "cancelled"]
    tracking_number: str | None = None


class InitiatePaymentRequest(BaseModel):
    order_id: int
