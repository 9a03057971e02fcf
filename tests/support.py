# tests/support.py
"""Dublês compartilhados pelos testes: relógio, backend HTTP falso e gateway falso."""
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import httpx
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from vitrine import create_app
from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.gateway import GatewayTransactionNotFound
from vitrine.database.connection import build_engine, get_session, init_db
from vitrine.integration.gateway import (
    GatewayTransaction,
    GatewayTransactionDetails,
    TransactionRequest,
    get_payment_gateway,
)
from vitrine.schemas.payment.payment import CustomerPayload, ShippingPayload
from vitrine.storefront.api import StorefrontApi
from vitrine.storefront.session import SessionContext


class FakeClock:
    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2025, 3, 10, 14, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def make_configuration(**overrides) -> Configuration:
    configuration = Configuration()
    for key, value in overrides.items():
        setattr(configuration, key, value)
    return configuration


def sample_customer() -> CustomerPayload:
    return CustomerPayload(name="Maria Silva", email="maria@example.com", cpf="123.456.789-09", phone="(11) 98765-4321")


def sample_shipping() -> ShippingPayload:
    return ShippingPayload(
        cep="01310-100",
        rua="Avenida Paulista",
        numero="1000",
        complemento="Apto 12",
        bairro="Bela Vista",
        cidade="São Paulo",
        estado="SP",
    )


def sample_cart_items(price: str = "150.00") -> List[dict]:
    return [{"productId": 1, "quantity": 1, "product": {"name": "Camiseta Básica", "price": float(Decimal(price))}}]


class FakeBackend:
    """Backend da loja simulado para o `httpx.MockTransport` do storefront."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock or FakeClock()
        self.requests: List[httpx.Request] = []
        self.payment_responses: List[httpx.Response] = []
        self.order_status = "Aguardando Pagamento"
        self.order_payment_method = "Pix"
        self.order_error: Optional[httpx.Response] = None
        self.orders_unreachable = False
        self.cart: List[dict] = []
        self.pix_counter = 0

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def payment_bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.calls("POST", "/api/create-payment")]

    def pix_response(self, expires_at: Optional[str] = None) -> httpx.Response:
        self.pix_counter += 1
        transaction = {
            "token_transaction": f"PIX-TOKEN-{self.pix_counter}",
            "order_number": f"LOJA-{self.pix_counter:04d}",
            "status_name": "Aguardando Pagamento",
            "payment": {
                "qrcode_original_path": f"00020126580014br.gov.bcb.pix{self.pix_counter}",
                "qrcode_path": f"https://pix.example.com/qr/{self.pix_counter}.png",
            },
            "max_days_to_keep_waiting_payment": expires_at
            or (self.clock.now + timedelta(minutes=10)).isoformat(),
        }
        return httpx.Response(200, json={"data_response": {"transaction": transaction}})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/api/create-payment":
            if self.payment_responses:
                return self.payment_responses.pop(0)
            body = json.loads(request.content)
            if body["paymentMethod"] == "pix":
                return self.pix_response()
            return httpx.Response(
                200,
                json={"data_response": {"transaction": {"token_transaction": "CARD-TOKEN-1", "order_number": "LOJA-0001"}}},
            )

        if request.method == "GET" and path.startswith("/api/orders/"):
            if self.orders_unreachable:
                raise httpx.ConnectError("conexão recusada", request=request)
            if self.order_error is not None:
                return self.order_error
            token = path.rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={
                    "id": "LOJA-0001",
                    "total": "150.00",
                    "status": self.order_status,
                    "customerName": "Maria Silva",
                    "customerEmail": "maria@example.com",
                    "shippingAddress": "Rua: Avenida Paulista, N°: 1000",
                    "items": [{"name": "Camiseta Básica", "quantity": 1, "price": 150.0}],
                    "paymentMethod": self.order_payment_method,
                    "token": token,
                },
            )

        if path == "/api/cart":
            if request.method == "GET":
                return httpx.Response(200, json=self.cart)
            if request.method == "DELETE":
                self.cart = []
                return httpx.Response(204)

        return httpx.Response(404, json={"message": "Rota não encontrada"})


def storefront_api(handler_or_app, storage: Optional[dict] = None) -> StorefrontApi:
    """Cliente do storefront sobre um MockTransport (handler) ou sobre o app FastAPI (ASGI)."""
    if callable(handler_or_app) and not hasattr(handler_or_app, "router"):
        transport = httpx.MockTransport(handler_or_app)
    else:
        transport = httpx.ASGITransport(app=handler_or_app)
    client = httpx.AsyncClient(transport=transport, base_url="http://loja.test")
    return StorefrontApi(SessionContext(storage if storage is not None else {}), client=client)


class FakeGateway:
    """Gateway de pagamento em memória para os testes das rotas."""

    name = "fake"

    def __init__(self):
        self.requests: List[TransactionRequest] = []
        self.create_error: Optional[Exception] = None
        self.get_error: Optional[Exception] = None
        self.status = "Aguardando Pagamento"
        self.expires_at: Optional[str] = None
        self.counter = 0

    def create_transaction(self, request: TransactionRequest) -> GatewayTransaction:
        self.requests.append(request)
        if self.create_error:
            raise self.create_error
        self.counter += 1
        return GatewayTransaction(
            token=f"TX-{self.counter}",
            order_number=request.order_number,
            status_name="Aguardando Pagamento",
            qr_code="00020126580014br.gov.bcb.pix" if request.method.value == "pix" else None,
            qr_code_url="https://pix.example.com/qr.png" if request.method.value == "pix" else None,
            expires_at=self.expires_at,
        )

    def get_transaction(self, token: str) -> GatewayTransactionDetails:
        if self.get_error:
            raise self.get_error
        if not token.startswith("TX-"):
            raise GatewayTransactionNotFound()
        return GatewayTransactionDetails(token=token, status=self.status)


def build_test_app(gateway: FakeGateway):
    """App completo sobre SQLite em memória, com o gateway substituído."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)

    app = create_app(init_database=False, start_jobs=False)

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    return app, engine
