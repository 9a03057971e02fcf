from datetime import datetime, timezone
import logging
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.app_exception import AppHttpException
from vitrine.core.exceptions.gateway import GatewayDeclined, GatewayError
from vitrine.core.middlewares.session import get_session_id
from vitrine.database.connection import get_session
from vitrine.enums.order_status import OrderStatus
from vitrine.enums.payment_method import PaymentMethod
from vitrine.enums.payment_status import PaymentStatus
from vitrine.enums.transaction_status import TransactionStatus
from vitrine.helpers.payment.expiration import expiration_or_default
from vitrine.integration.gateway import PaymentGateway, TransactionItem, TransactionRequest, get_payment_gateway
from vitrine.models.order.order import Order
from vitrine.models.order.order_item import OrderItem
from vitrine.models.payment.payment import Payment
from vitrine.schemas.payment.payment import REQUIRED_SHIPPING_FIELDS, PaymentRequest

configuration = Configuration()
db_session = get_session


class PaymentRouter(APIRouter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.add_api_route("/api/create-payment", self.create_payment, methods=["POST"], response_model=dict)

    def validate_request(self, data: PaymentRequest) -> PaymentMethod:
        """Validação detalhada do corpo; cada falha vira 400 com a mensagem correspondente."""
        if not data.amount or data.amount <= 0:
            raise AppHttpException(status_code=status.HTTP_400_BAD_REQUEST, detail="O valor da transação é inválido.")
        if not data.payment_method:
            raise AppHttpException(status_code=status.HTTP_400_BAD_REQUEST, detail="O método de pagamento não foi especificado.")
        try:
            method = PaymentMethod.parse(data.payment_method)
        except ValueError:
            raise AppHttpException(status_code=status.HTTP_400_BAD_REQUEST, detail="Método de pagamento inválido.")
        if not data.cart_items:
            raise AppHttpException(status_code=status.HTTP_400_BAD_REQUEST, detail="O carrinho está vazio ou em formato inválido.")

        # Validação do Cliente
        if not data.customer:
            raise AppHttpException(status_code=status.HTTP_400_BAD_REQUEST, detail="Os dados do cliente estão ausentes.")
        customer = data.customer
        if not customer.name or not customer.email or not customer.cpf or not customer.phone:
            raise AppHttpException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Dados do cliente incompletos (nome, email, CPF ou telefone).",
            )

        # Validação do Endereço de Entrega
        if not data.shipping:
            raise AppHttpException(status_code=status.HTTP_400_BAD_REQUEST, detail="Os dados de entrega estão ausentes.")
        for field in REQUIRED_SHIPPING_FIELDS:
            if not getattr(data.shipping, field):
                raise AppHttpException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Dado de entrega ausente: '{field}'.")

        if method == PaymentMethod.CREDIT_CARD and not data.card_token:
            raise AppHttpException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Token do cartão é obrigatório para este método de pagamento.",
            )
        if method == PaymentMethod.PIX and data.amount < configuration.pix_min_amount:
            raise AppHttpException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="O valor mínimo para pagamentos com PIX é de R$ 1,00.",
            )
        return method

    def create_pending_order(self, data: PaymentRequest, method: PaymentMethod, session_id: str) -> Order:
        customer = data.customer
        shipping = data.shipping
        order = Order(
            session_id=session_id,
            customer_name=customer.name,
            customer_email=customer.email,
            cpf=customer.cpf,
            phone=customer.phone,
            cep=shipping.cep,
            rua=shipping.rua,
            numero=shipping.numero,
            complemento=shipping.complemento,
            bairro=shipping.bairro,
            cidade=shipping.cidade,
            estado=shipping.estado,
            payment_method=method.value,
            total_amount=data.amount,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.UNPAID,
        )
        order.items = [
            OrderItem(
                product_id=item.product_id,
                name=item.product.name,
                quantity=item.quantity,
                unit_price=item.product.price,
                total_price=round(item.product.price * item.quantity, 2),
            )
            for item in data.cart_items
        ]
        return order

    def mark_failed(self, session: Session, order: Order):
        order.status = OrderStatus.CANCELLED
        order.payment_status = PaymentStatus.FAILED
        order.updated_at = datetime.now(timezone.utc)
        session.add(order)
        session.commit()

    def create_payment(
        self,
        data: PaymentRequest,
        session_id: str = Depends(get_session_id),
        session: Session = Depends(db_session),
        gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        method = self.validate_request(data)
        logging.info(f"PAGAMENTO >>> Dados validados: {method.value} - Valor: {data.amount}")

        order = self.create_pending_order(data, method, session_id)
        session.add(order)
        session.commit()
        session.refresh(order)

        request = TransactionRequest(
            amount=data.amount,
            method=method,
            order_number=order.order_number,
            customer=data.customer,
            shipping=data.shipping,
            items=[
                TransactionItem(
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    product_id=item.product_id,
                )
                for item in order.items
            ],
            card_token=data.card_token,
            finger_print=data.finger_print,
            payment_method_id=data.payment_method_id,
            notification_url=configuration.payment_notification_url,
        )

        try:
            transaction = gateway.create_transaction(request)
        except GatewayDeclined as e:
            logging.warning(f"PAGAMENTO >>> Pedido {order.order_number} recusado pelo gateway: {e.message}")
            self.mark_failed(session, order)
            raise AppHttpException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=e.message)
        except GatewayError as e:
            logging.error(f"PAGAMENTO >>> Erro ao processar pagamento do pedido {order.order_number}: {e.message}", exc_info=True)
            self.mark_failed(session, order)
            raise AppHttpException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=e.message,
                solution="Tente novamente em alguns instantes.",
            )

        now_utc = datetime.now(timezone.utc)
        expires_at = None
        if method == PaymentMethod.PIX:
            expires_at = expiration_or_default(transaction.expires_at, now_utc, configuration.pix_expiration_minutes)

        payment = Payment(
            order_id=order.id,
            method=method.value,
            amount=data.amount,
            transaction_code=transaction.token,
            status=TransactionStatus.PENDING,
            qr_code=transaction.qr_code,
            qr_code_url=transaction.qr_code_url,
            expires_at=expires_at,
            created_at=now_utc,
        )
        order.transaction_token = transaction.token
        order.updated_at = now_utc
        session.add(order)
        session.add(payment)
        session.commit()

        logging.info(f"PAGAMENTO >>> Transação {transaction.token} criada para o pedido {order.order_number}")

        transaction_payload = {
            "token_transaction": transaction.token,
            "order_number": transaction.order_number,
            "status_name": transaction.status_name,
        }
        if method == PaymentMethod.PIX:
            transaction_payload["payment"] = {
                "qrcode_original_path": transaction.qr_code,
                "qrcode_path": transaction.qr_code_url,
            }
            transaction_payload["max_days_to_keep_waiting_payment"] = expires_at.isoformat()

        return {"data_response": {"transaction": transaction_payload}}
