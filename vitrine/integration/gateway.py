"""Interface do gateway de pagamento (desacoplada do provedor)."""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from vitrine.configuration.settings import Configuration
from vitrine.enums.payment_method import PaymentMethod
from vitrine.schemas.payment.payment import CustomerPayload, ShippingPayload


@dataclass
class TransactionItem:
    name: str
    quantity: int
    unit_price: float
    product_id: Optional[int] = None


@dataclass
class TransactionRequest:
    """Dados já validados enviados ao gateway para criar a transação."""

    amount: float
    method: PaymentMethod
    order_number: str
    customer: CustomerPayload
    shipping: ShippingPayload
    items: List[TransactionItem] = field(default_factory=list)
    card_token: Optional[str] = None
    finger_print: Optional[str] = None
    payment_method_id: Optional[str] = None
    notification_url: Optional[str] = None


@dataclass
class GatewayTransaction:
    """Resultado da criação de uma transação."""

    token: str
    order_number: str
    status_name: Optional[str] = None
    qr_code: Optional[str] = None
    qr_code_url: Optional[str] = None
    expires_at: Optional[str] = None


@dataclass
class GatewayOrderItem:
    name: str
    quantity: int
    price: float


@dataclass
class GatewayTransactionDetails:
    """Consulta de uma transação; campos ausentes são completados pelo pedido local."""

    token: str
    status: str
    transaction_id: Optional[str] = None
    total: Optional[float] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    shipping_address: Optional[str] = None
    items: Optional[List[GatewayOrderItem]] = None
    payment_method: Optional[str] = None


class PaymentGateway(Protocol):
    name: str

    def create_transaction(self, request: TransactionRequest) -> GatewayTransaction:
        """Cria a transação (cartão ou PIX). Levanta GatewayDeclined/GatewayError."""
        ...

    def get_transaction(self, token: str) -> GatewayTransactionDetails:
        """Consulta a transação pelo token. Levanta GatewayTransactionNotFound/GatewayError."""
        ...


_gateway: Optional[PaymentGateway] = None


def build_payment_gateway(configuration: Configuration) -> PaymentGateway:
    if configuration.payment_gateway == "mercadopago":
        from vitrine.integration.mercadopago import MercadoPagoGateway
        return MercadoPagoGateway(configuration)

    from vitrine.integration.vindi import VindiGateway
    return VindiGateway(configuration)


def get_payment_gateway() -> PaymentGateway:
    """Dependência do FastAPI: gateway configurado em PAYMENT_GATEWAY."""
    global _gateway
    if _gateway is None:
        configuration = Configuration()
        _gateway = build_payment_gateway(configuration)
        logging.info(f"PAGAMENTO >>> Gateway selecionado: {_gateway.name}")
    return _gateway
