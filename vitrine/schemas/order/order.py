from typing import List, Optional
from pydantic import BaseModel, Field


class OrderItemRead(BaseModel):
    name: str
    quantity: int
    price: float


class OrderDetailsRead(BaseModel):
    id: str
    total: str
    status: str
    customer_name: Optional[str] = Field(default=None, serialization_alias="customerName")
    customer_email: Optional[str] = Field(default=None, serialization_alias="customerEmail")
    shipping_address: Optional[str] = Field(default=None, serialization_alias="shippingAddress")
    items: List[OrderItemRead] = []
    payment_method: Optional[str] = Field(default=None, serialization_alias="paymentMethod")
