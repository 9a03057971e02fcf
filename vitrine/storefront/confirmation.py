import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List, MutableMapping, Optional, Union
from urllib.parse import parse_qs, urlparse

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.checkout import CheckoutError, NotFound
from vitrine.helpers.order.formatters import format_currency
from vitrine.storefront.api import StorefrontApi
from vitrine.storefront.cart_store import CartStore
from vitrine.storefront.session import SessionContext, clear_checkout_state
from vitrine.storefront.status import PaymentMethodKind, classify_payment_method, payment_method_label


@dataclass(frozen=True)
class ConfirmationItem:
    name: str
    quantity: int
    price: Decimal

    @property
    def formatted_total(self) -> str:
        return format_currency(self.price * self.quantity)


@dataclass(frozen=True)
class OrderConfirmation:
    order_id: str
    token: str
    total: Decimal
    formatted_total: str
    status: str
    customer_name: Optional[str]
    customer_email: Optional[str]
    shipping_address: Optional[str]
    payment_method: Optional[str]
    payment_method_kind: PaymentMethodKind
    payment_method_label: str
    items: List[ConfirmationItem] = field(default_factory=list)


@dataclass(frozen=True)
class NotFoundState:
    message: str = "Não foi possível encontrar as informações do seu pedido."


ConfirmationResult = Union[OrderConfirmation, NotFoundState]


def _decimal(value) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


class OrderConfirmationResolver:
    """
    Página de sucesso: resolve o pedido pelo token da transação.

    O estado do checkout na sessão é limpo antes da consulta; o carrinho e o
    id da sessão só são descartados quando o pedido é encontrado.
    """

    def __init__(
        self,
        api: StorefrontApi,
        cart_store: CartStore,
        storage: MutableMapping[str, str],
        session: Optional[SessionContext] = None,
        configuration: Optional[Configuration] = None,
    ):
        configuration = configuration or Configuration()
        self.api = api
        self.cart_store = cart_store
        self.storage = storage
        self.session = session or api.session
        self.card_keywords = configuration.card_method_keywords

    async def resolve_from_url(self, url: str) -> ConfirmationResult:
        clear_checkout_state(self.storage)
        order_ids = parse_qs(urlparse(url).query).get("orderId")
        if not order_ids or not order_ids[0]:
            logging.error("PEDIDO >>> Nenhum orderId encontrado na URL")
            return NotFoundState()
        return await self.resolve(order_ids[0])

    async def resolve(self, token: str) -> ConfirmationResult:
        clear_checkout_state(self.storage)
        try:
            data = await self.api.get_order(token)
        except NotFound:
            logging.warning(f"PEDIDO >>> Pedido {token} não encontrado")
            return NotFoundState()
        except CheckoutError as e:
            logging.error(f"PEDIDO >>> Falha ao buscar pedido {token}: {e.message}")
            return NotFoundState()

        try:
            await self.cart_store.clear()
        except CheckoutError as e:
            logging.warning(f"PEDIDO >>> Não foi possível limpar o carrinho: {e.message}")
        self.session.clear()

        total = _decimal(data.get("total"))
        method = data.get("paymentMethod")
        kind = classify_payment_method(method, self.card_keywords)

        logging.info(f"PEDIDO >>> Pedido {data.get('id')} confirmado ({kind.value})")
        return OrderConfirmation(
            order_id=str(data.get("id") or token),
            token=token,
            total=total,
            formatted_total=format_currency(total),
            status=data.get("status") or "",
            customer_name=data.get("customerName"),
            customer_email=data.get("customerEmail"),
            shipping_address=data.get("shippingAddress"),
            payment_method=method,
            payment_method_kind=kind,
            payment_method_label=payment_method_label(kind),
            items=[
                ConfirmationItem(
                    name=item.get("name") or "",
                    quantity=int(item.get("quantity") or 0),
                    price=_decimal(item.get("price")),
                )
                for item in data.get("items") or []
            ],
        )
