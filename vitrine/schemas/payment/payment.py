# vitrine/schemas/payment/payment.py
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, Field


class CustomerPayload(BaseModel):
    # O formulário de cartão envia customerName/customerEmail; o de PIX, name/email
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "customerName"))
    email: Optional[str] = Field(default=None, validation_alias=AliasChoices("email", "customerEmail"))
    cpf: Optional[str] = None
    phone: Optional[str] = None


class ShippingPayload(BaseModel):
    cep: Optional[str] = None
    rua: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None


REQUIRED_SHIPPING_FIELDS = ["cep", "rua", "numero", "bairro", "cidade", "estado"]


class ProductSnapshot(BaseModel):
    name: str
    price: float


class PaymentCartItem(BaseModel):
    product_id: Optional[int] = Field(default=None, alias="productId")
    quantity: int = Field(default=1, ge=1)
    product: ProductSnapshot

    class Config:
        populate_by_name = True


class PaymentRequest(BaseModel):
    amount: Optional[float] = None
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    customer: Optional[CustomerPayload] = None
    shipping: Optional[ShippingPayload] = None
    cart_items: Optional[List[PaymentCartItem]] = Field(default=None, alias="cartItems")
    card_token: Optional[str] = Field(default=None, alias="cardToken")
    finger_print: Optional[str] = Field(default=None, alias="fingerPrint")
    payment_method_id: Optional[str] = Field(default=None, alias="paymentMethodId")  # "visa", "master", etc.

    class Config:
        populate_by_name = True
