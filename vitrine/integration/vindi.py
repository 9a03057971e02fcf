import logging
from typing import Optional

import httpx

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.gateway import GatewayDeclined, GatewayError, GatewayTransactionNotFound
from vitrine.enums.payment_method import PaymentMethod
from vitrine.helpers.order.formatters import only_digits
from vitrine.integration.gateway import (
    GatewayOrderItem,
    GatewayTransaction,
    GatewayTransactionDetails,
    TransactionRequest,
)

# Códigos de forma de pagamento do Intermediador
PIX_PAYMENT_METHOD_ID = "27"
CARD_PAYMENT_METHOD_ID = "3"
AVAILABLE_PAYMENT_METHODS = "2,3,4,5,6,7,14,15,16,18,19,21,22,23,27"


class VindiGateway:
    """
    Gateway para a API de transações da Vindi (Yapay Intermediador).
    A resposta de criação é repassada ao storefront no formato data_response.
    """

    name = "vindi"

    def __init__(self, configuration: Configuration, client: Optional[httpx.Client] = None):
        self.api_url = configuration.vindi_api_url
        self.token_account = configuration.vindi_api_token
        self.client = client or httpx.Client(timeout=configuration.http_timeout_seconds)

        if not self.token_account:
            logging.warning("PAGAMENTO >>> VINDI_API_TOKEN não configurado. Pagamentos reais falharão.")

    @property
    def base_url(self) -> str:
        return self.api_url.split("/api/")[0]

    def _build_body(self, request: TransactionRequest) -> dict:
        customer = request.customer
        shipping = request.shipping
        payment = {
            "payment_method_id": PIX_PAYMENT_METHOD_ID if request.method == PaymentMethod.PIX else CARD_PAYMENT_METHOD_ID,
        }
        if request.method == PaymentMethod.CREDIT_CARD:
            payment["card_token"] = request.card_token
            payment["split"] = 1

        body = {
            "token_account": self.token_account,
            "customer": {
                "name": customer.name,
                "email": customer.email,
                "cpf": only_digits(customer.cpf),
                "contacts": [
                    {"type_contact": "M", "number_contact": only_digits(customer.phone)}
                ] if customer.phone else [],
                "addresses": [
                    {
                        "type_address": "B",
                        "postal_code": only_digits(shipping.cep),
                        "street": shipping.rua,
                        "number": shipping.numero,
                        "completion": shipping.complemento,
                        "neighborhood": shipping.bairro,
                        "city": shipping.cidade,
                        "state": shipping.estado,
                    }
                ],
            },
            "transaction_product": [
                {
                    "description": item.name,
                    "quantity": str(item.quantity),
                    "price_unit": f"{item.unit_price:.2f}",
                    "code": item.product_id,
                    "sku_code": item.product_id,
                }
                for item in request.items
            ],
            "transaction": {
                "customer_ip": "127.0.0.1",
                "order_number": request.order_number,
                "available_payment_methods": AVAILABLE_PAYMENT_METHODS,
                "shipping_type": "A combinar",
                "shipping_price": "0.00",
            },
            "payment": payment,
        }
        if request.notification_url:
            body["transaction"]["url_notification"] = request.notification_url
        if request.finger_print:
            body["finger_print"] = request.finger_print
        return body

    @staticmethod
    def _error_message(data: dict, default: str) -> str:
        error_response = (data or {}).get("error_response") or {}
        for key in ("general_errors", "validation_errors"):
            errors = error_response.get(key) or []
            if errors and errors[0].get("message"):
                return errors[0]["message"]
        return default

    def create_transaction(self, request: TransactionRequest) -> GatewayTransaction:
        body = self._build_body(request)
        logging.info(f"PAGAMENTO >>> Chamando a Vindi: POST {self.api_url} ({request.method.value}, pedido {request.order_number})")

        try:
            response = self.client.post(self.api_url, json=body)
            data = response.json()
        except (httpx.RequestError, ValueError) as e:
            logging.error(f"PAGAMENTO >>> Erro ao chamar a API da Vindi -> {e}")
            raise GatewayError()

        if response.is_error:
            logging.error(f"PAGAMENTO >>> Vindi retornou status {response.status_code}: {data}")
            if response.is_client_error and isinstance(data, dict) and data.get("error_response"):
                raise GatewayDeclined(self._error_message(data, "Falha na API da Vindi"))
            raise GatewayError()

        transaction = (data.get("data_response") or {}).get("transaction") or {}
        payment = transaction.get("payment") or {}

        token = transaction.get("token_transaction")
        if not token:
            raise GatewayError("Resposta da Vindi sem token da transação.")

        status_name = transaction.get("status_name")
        if request.method == PaymentMethod.CREDIT_CARD and self._is_refused(status_name):
            raise GatewayDeclined(payment.get("payment_response") or "Seu pagamento foi recusado.")

        return GatewayTransaction(
            token=token,
            order_number=transaction.get("order_number") or request.order_number,
            status_name=status_name,
            qr_code=payment.get("qrcode_original_path"),
            qr_code_url=payment.get("qrcode_path"),
            expires_at=transaction.get("max_days_to_keep_waiting_payment"),
        )

    @staticmethod
    def _is_refused(status_name: Optional[str]) -> bool:
        normalized = (status_name or "").lower()
        return any(word in normalized for word in ("cancelad", "reprovad", "recusad"))

    def get_transaction(self, token: str) -> GatewayTransactionDetails:
        url = f"{self.base_url}/api/v3/transactions/get_by_token"
        params = {"token_account": self.token_account, "token_transaction": token}
        logging.info(f"PEDIDO >>> Consultando transação na Vindi: {token}")

        try:
            response = self.client.get(url, params=params)
            data = response.json()
        except (httpx.RequestError, ValueError) as e:
            logging.error(f"PEDIDO >>> Erro ao consultar transação na Vindi -> {e}")
            raise GatewayError()

        if response.is_error:
            logging.error(f"PEDIDO >>> Vindi retornou status {response.status_code} na consulta: {data}")
            if response.is_server_error:
                raise GatewayError()
            raise GatewayTransactionNotFound()

        transaction = (data.get("data_response") or {}).get("transaction")
        if not transaction:
            raise GatewayTransactionNotFound()

        payment = transaction.get("payment") or {}
        customer = transaction.get("customer") or {}
        addresses = customer.get("addresses") or []

        return GatewayTransactionDetails(
            token=token,
            transaction_id=str(transaction.get("transaction_id")) if transaction.get("transaction_id") else None,
            status=transaction.get("status_name") or "",
            total=float(payment["price_payment"]) if payment.get("price_payment") else None,
            customer_name=customer.get("name"),
            customer_email=customer.get("email"),
            shipping_address="\n".join(
                f"Rua: {addr.get('street')}, N°: {addr.get('number')}\n"
                f"Bairro: {addr.get('neighborhood')}\n"
                f"Cidade: {addr.get('city')} - {addr.get('state')}\n"
                f"CEP: {addr.get('postal_code')}"
                for addr in addresses
            ) or None,
            items=[
                GatewayOrderItem(
                    name=item.get("description"),
                    quantity=int(item.get("quantity") or 0),
                    price=float(item.get("price_unit") or 0),
                )
                for item in transaction.get("transaction_products") or []
            ] or None,
            payment_method=payment.get("payment_method_name"),
        )
