import logging
from datetime import datetime, timedelta, timezone

import mercadopago

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

# Tradução do status do Mercado Pago para o texto exibido ao cliente
MP_STATUS_NAMES = {
    "approved": "Aprovada",
    "authorized": "Aguardando Pagamento",
    "pending": "Aguardando Pagamento",
    "in_process": "Em Análise",
    "in_mediation": "Em Análise",
    "rejected": "Cancelada",
    "cancelled": "Cancelada",
    "refunded": "Estornada",
    "charged_back": "Estornada",
}


class MercadoPagoGateway:
    name = "mercadopago"

    def __init__(self, configuration: Configuration, sdk=None):
        self.sdk = sdk or mercadopago.SDK(configuration.mercado_pago_access_token)
        self.pix_expiration_minutes = configuration.pix_expiration_minutes

    @staticmethod
    def _split_name(full_name: str):
        parts = (full_name or "").strip().split(" ", 1)
        first_name = parts[0]
        last_name = parts[1] if len(parts) > 1 else ""
        return first_name, last_name

    def _build_body(self, request: TransactionRequest, now_utc: datetime) -> dict:
        first_name, last_name = self._split_name(request.customer.name)
        body = {
            "transaction_amount": round(request.amount, 2),
            "description": f"Pedido #{request.order_number}",
            "external_reference": request.order_number,
            "payer": {
                "email": request.customer.email,
                "first_name": first_name,
                "last_name": last_name,
                "identification": {
                    "type": "CPF",
                    "number": only_digits(request.customer.cpf),
                },
            },
            "additional_info": {
                "items": [
                    {
                        "id": str(item.product_id) if item.product_id else None,
                        "title": item.name,
                        "quantity": item.quantity,
                        "unit_price": item.unit_price,
                    }
                    for item in request.items
                ],
            },
        }
        if request.notification_url:
            body["notification_url"] = request.notification_url

        if request.method == PaymentMethod.PIX:
            expires_at = now_utc + timedelta(minutes=self.pix_expiration_minutes)
            body["payment_method_id"] = "pix"
            body["date_of_expiration"] = expires_at.isoformat(timespec="milliseconds")
        else:
            body["token"] = request.card_token  # token do cartão gerado no frontend
            body["installments"] = 1
            body["payment_method_id"] = request.payment_method_id
            body["capture"] = True
        return body

    def create_transaction(self, request: TransactionRequest) -> GatewayTransaction:
        now_utc = datetime.now(timezone.utc)
        body = self._build_body(request, now_utc)
        logging.info(f"PAGAMENTO >>> Criando pagamento no Mercado Pago ({request.method.value}, pedido {request.order_number})")

        try:
            result = self.sdk.payment().create(body)
        except Exception as e:
            logging.error(f"MERCADO PAGO >>> Erro ao criar pagamento -> {e}", exc_info=True)
            raise GatewayError()

        response = result.get("response")
        if not response:
            raise GatewayError("Erro ao se comunicar com o Mercado Pago")

        if result.get("status", 200) >= 400:
            raise GatewayDeclined(response.get("message") or "Pagamento recusado pelo Mercado Pago")

        status = response.get("status")
        if request.method == PaymentMethod.PIX:
            if status != "pending":
                raise GatewayDeclined("Erro ao gerar PIX")
        elif status not in ["approved", "in_process", "pending"]:
            raise GatewayDeclined(response.get("status_detail") or "Seu pagamento foi recusado.")

        transaction_data = (response.get("point_of_interaction") or {}).get("transaction_data") or {}
        qr_code_base64 = transaction_data.get("qr_code_base64")

        return GatewayTransaction(
            token=str(response["id"]),
            order_number=request.order_number,
            status_name=MP_STATUS_NAMES.get(status, status),
            qr_code=transaction_data.get("qr_code"),
            qr_code_url=f"data:image/png;base64,{qr_code_base64}" if qr_code_base64 else transaction_data.get("ticket_url"),
            expires_at=response.get("date_of_expiration") or body.get("date_of_expiration"),
        )

    def get_transaction(self, token: str) -> GatewayTransactionDetails:
        try:
            result = self.sdk.payment().get(token)
        except Exception as e:
            logging.error(f"MERCADO PAGO >>> Erro ao buscar pagamento {token} - {e}")
            raise GatewayError()

        response = result.get("response")
        if result.get("status") == 404 or not response or "id" not in response:
            raise GatewayTransactionNotFound()

        payer = response.get("payer") or {}
        items = ((response.get("additional_info") or {}).get("items")) or []
        method_id = response.get("payment_method_id") or ""

        return GatewayTransactionDetails(
            token=token,
            transaction_id=str(response["id"]),
            status=MP_STATUS_NAMES.get(response.get("status"), response.get("status") or ""),
            total=response.get("transaction_amount"),
            customer_email=payer.get("email"),
            items=[
                GatewayOrderItem(
                    name=item.get("title"),
                    quantity=int(item.get("quantity") or 0),
                    price=float(item.get("unit_price") or 0),
                )
                for item in items
            ] or None,
            payment_method="Pix" if method_id == "pix" else f"Cartão de Crédito ({method_id})" if method_id else None,
        )
