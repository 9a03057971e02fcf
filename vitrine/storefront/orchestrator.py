"""
Orquestração do pagamento no storefront: cartão (tokenização + cobrança)
e PIX (geração idempotente do código, guardado na sessão para sobreviver
a um recarregamento).
"""
import json
import logging
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, MutableMapping, Optional

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.checkout import (
    GatewayResponseInvalid,
    PaymentDeclined,
    PaymentInProgress,
    ValidationError,
)
from vitrine.enums.payment_method import PaymentMethod
from vitrine.helpers.payment.expiration import expiration_or_default, parse_expiration
from vitrine.schemas.payment.payment import REQUIRED_SHIPPING_FIELDS, CustomerPayload, ShippingPayload
from vitrine.storefront.api import StorefrontApi
from vitrine.storefront.session import PIX_PAYMENT_KEY
from vitrine.storefront.tokenizer import CardData, CardTokenizer, tokenize_card

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CardPaymentResult:
    transaction_token: str
    order_number: Optional[str] = None


@dataclass(frozen=True)
class PixTransaction:
    transaction_token: str
    qr_code_url: str
    copy_paste_key: str
    order_number: Optional[str]
    expires_at: datetime
    canceled: bool = False

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def to_storage(self) -> str:
        data = asdict(self)
        data["expires_at"] = self.expires_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_storage(cls, raw: str) -> Optional["PixTransaction"]:
        try:
            data = json.loads(raw)
            data["expires_at"] = parse_expiration(data["expires_at"])
            if data["expires_at"] is None:
                return None
            return cls(**data)
        except (ValueError, KeyError, TypeError):
            return None


class PaymentOrchestrator:
    def __init__(
        self,
        api: StorefrontApi,
        customer: CustomerPayload,
        shipping: ShippingPayload,
        cart_items: List[dict],
        amount: Decimal,
        storage: Optional[MutableMapping[str, str]] = None,
        clock: Clock = utc_now,
        configuration: Optional[Configuration] = None,
    ):
        self.api = api
        self.customer = customer
        self.shipping = shipping
        self.cart_items = cart_items
        self.amount = Decimal(str(amount))
        self.storage = storage if storage is not None else {}
        self.clock = clock
        self.configuration = configuration or Configuration()
        self._in_flight = False
        self._live: Optional[PixTransaction] = None

        raw = self.storage.get(PIX_PAYMENT_KEY)
        if raw:
            self._live = PixTransaction.from_storage(raw)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def live_transaction(self) -> Optional[PixTransaction]:
        return self._live

    def _set_live(self, transaction: Optional[PixTransaction]):
        self._live = transaction
        if transaction is None:
            self.storage.pop(PIX_PAYMENT_KEY, None)
        else:
            self.storage[PIX_PAYMENT_KEY] = transaction.to_storage()

    def _validate(self):
        if self.amount <= 0:
            raise ValidationError("O valor da transação é inválido.")
        if not self.cart_items:
            raise ValidationError("Adicione itens ao carrinho antes de finalizar a compra.", title="Carrinho Vazio")
        customer = self.customer
        if not customer.name or not customer.email or not customer.cpf or not customer.phone:
            raise ValidationError("Por favor, preencha todos os campos obrigatórios.")
        if any(not getattr(self.shipping, field) for field in REQUIRED_SHIPPING_FIELDS):
            raise ValidationError("Por favor, preencha todos os campos obrigatórios.")

    def _payload(self, method: PaymentMethod) -> dict:
        return {
            "amount": float(self.amount),
            "paymentMethod": method.value,
            "customer": {
                "name": self.customer.name,
                "email": self.customer.email,
                "cpf": self.customer.cpf,
                "phone": self.customer.phone,
            },
            "shipping": self.shipping.model_dump(),
            "cartItems": self.cart_items,
        }

    def _begin(self):
        if self._in_flight:
            raise PaymentInProgress("Aguarde, seu pagamento já está sendo processado.")
        self._validate()
        self._in_flight = True

    async def pay_with_card(
        self,
        card: CardData,
        fingerprint: Optional[str],
        tokenizer: Optional[CardTokenizer],
    ) -> CardPaymentResult:
        self._begin()
        try:
            card_token = await tokenize_card(tokenizer, card, fingerprint)

            payload = self._payload(PaymentMethod.CREDIT_CARD)
            payload["cardToken"] = card_token
            payload["fingerPrint"] = fingerprint
            data = await self.api.create_payment(payload, declined_message="Seu pagamento foi recusado.")

            transaction = ((data or {}).get("data_response") or {}).get("transaction") or {}
            token = transaction.get("token_transaction")
            if not token:
                raise PaymentDeclined("Não foi possível obter o identificador da transação.")

            logging.info(f"PAGAMENTO >>> Cartão aprovado, transação {token}")
            return CardPaymentResult(transaction_token=token, order_number=transaction.get("order_number"))
        finally:
            self._in_flight = False

    async def generate_pix(self, force: bool = False) -> PixTransaction:
        """
        Gera (ou reaproveita) o PIX do rascunho atual.

        Sem `force`, um PIX vivo que não expirou nem foi cancelado é devolvido
        sem nova chamada ao backend. Com `force`, o anterior é descartado.
        """
        live = self._live
        if not force and live and not live.canceled and not live.is_expired(self.clock()):
            return live

        self._begin()
        try:
            self._set_live(None)
            data = await self.api.create_payment(self._payload(PaymentMethod.PIX), declined_message="Falha ao gerar o PIX.")

            transaction = ((data or {}).get("data_response") or {}).get("transaction") or {}
            payment = transaction.get("payment") or {}
            token = transaction.get("token_transaction")
            if not token or not payment.get("qrcode_original_path") or not payment.get("qrcode_path"):
                raise GatewayResponseInvalid("Resposta da API de pagamento inválida.")

            pix = PixTransaction(
                transaction_token=token,
                qr_code_url=payment["qrcode_path"],
                copy_paste_key=payment["qrcode_original_path"],
                order_number=transaction.get("order_number"),
                expires_at=expiration_or_default(
                    transaction.get("max_days_to_keep_waiting_payment"),
                    self.clock(),
                    self.configuration.pix_expiration_minutes,
                ),
            )
            self._set_live(pix)
            logging.info(f"PIX >>> Código gerado para o pedido {pix.order_number} (transação {token}), expira em {pix.expires_at.isoformat()}")
            return pix
        finally:
            self._in_flight = False

    def mark_canceled(self):
        if self._live and not self._live.canceled:
            self._set_live(replace(self._live, canceled=True))
