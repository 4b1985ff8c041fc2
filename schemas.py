# One model per collection (user, product, order). Stored keys are snake_case,
# the JSON API is camelCase.
from __future__ import annotations
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic.alias_generators import to_camel


Number = Union[int, float]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Address(CamelModel):
    name: str = ""
    address: str = ""
    is_default: bool = False


class Preferences(CamelModel):
    favorite_items: List[str] = Field(default_factory=list)
    delivery_instructions: str = ""

    @field_validator("favorite_items")
    @classmethod
    def unique_items(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


class User(CamelModel):
    id: Optional[str] = None
    email: str
    name: str = ""
    nickname: str = ""
    phone: str = ""
    addresses: List[Address] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CreateBasicUser(BaseModel):
    email: Optional[str] = None
    nickname: Optional[str] = None


class RegisterUser(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class UserPatch(CamelModel):
    # email is the identity key and is not patchable

    name: Optional[str] = None
    nickname: Optional[str] = None
    phone: Optional[str] = None
    addresses: Optional[List[Address]] = None
    preferences: Optional[Preferences] = None


class UserEnvelope(BaseModel):
    success: bool = True
    message: str
    user: User


class DebugUser(CamelModel):
    id: str
    email: str
    name: str = ""
    nickname: str = ""
    created_at: Optional[datetime] = None


class DebugUsers(BaseModel):
    success: bool = True
    count: int
    users: List[DebugUser]


class Product(CamelModel):
    id: Optional[str] = None
    name: str
    description: str
    price: float
    category: str
    image_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductEnvelope(BaseModel):
    success: bool = True
    message: str
    product: Product


class Customer(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class OrderItem(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None
    price: Optional[Number] = None
    quantity: Optional[Number] = None


class DeliveryLocation(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None
    fee: Optional[Number] = None


class OrderCreate(CamelModel):
    # amounts are parsed loosely by the handler

    customer: Optional[Customer] = None
    items: Optional[List[OrderItem]] = None
    subtotal: Any = None
    delivery_fee: Any = None
    delivery_location: Optional[DeliveryLocation] = None
    total: Any = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    payment_status: Optional[str] = None
    order_reference: Optional[str] = None


class Order(CamelModel):
    id: Optional[str] = None
    customer: Customer
    items: List[OrderItem]
    subtotal: float
    delivery_fee: float = 0
    delivery_location: Optional[DeliveryLocation] = None
    total: float
    payment_method: str
    payment_reference: Optional[str] = None
    payment_status: str = "pending"
    order_reference: Optional[str] = None
    fulfilled: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderCreated(CamelModel):
    success: bool = True
    message: str
    order_id: str
    order: Order


class OrderStatusUpdate(BaseModel):
    fulfilled: Optional[StrictBool] = None


class OrderEnvelope(BaseModel):
    success: bool = True
    message: str
    order: Order


class Message(BaseModel):
    success: bool = True
    message: str
