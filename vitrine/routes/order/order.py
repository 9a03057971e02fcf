from datetime import datetime, timezone
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.app_exception import AppHttpException
from vitrine.core.exceptions.gateway import GatewayError, GatewayTransactionNotFound
from vitrine.database.connection import get_session
from vitrine.enums.order_status import OrderStatus
from vitrine.enums.payment_status import PaymentStatus
from vitrine.enums.transaction_status import TransactionStatus
from vitrine.helpers.payment.status import StatusOutcome, StatusVocabulary
from vitrine.integration.gateway import GatewayTransactionDetails, PaymentGateway, get_payment_gateway
from vitrine.models.order.order import Order
from vitrine.models.payment.payment import Payment
from vitrine.schemas.order.order import OrderDetailsRead, OrderItemRead

configuration = Configuration()
db_session = get_session

PAYMENT_METHOD_NAMES = {
    "pix": "Pix",
    "credit_card": "Cartão de Crédito",
}


class OrderRouter(APIRouter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.vocabulary = StatusVocabulary.from_configuration(configuration)
        self.add_api_route(
            "/api/orders/{token}",
            self.get_order_by_token,
            methods=["GET"],
            response_model=OrderDetailsRead,
            response_model_by_alias=True,
        )

    def sync_order_status(self, session: Session, order: Order, gateway_status: str):
        """Aplica no pedido local o status informado pelo gateway."""
        if order.status.is_terminal:
            return

        outcome = self.vocabulary.classify(gateway_status)
        if outcome == StatusOutcome.PENDING:
            return

        now_utc = datetime.now(timezone.utc)
        payment = session.exec(
            select(Payment)
            .where(Payment.transaction_code == order.transaction_token)
            .order_by(Payment.created_at.desc())
        ).first()

        if outcome == StatusOutcome.PAID:
            if order.payment_status == PaymentStatus.PAID:
                return
            order.status = OrderStatus.PAID
            order.payment_status = PaymentStatus.PAID
            if payment:
                payment.status = TransactionStatus.PAID
                payment.paid_at = now_utc
        else:
            order.status = OrderStatus.CANCELLED
            order.payment_status = PaymentStatus.FAILED
            if payment:
                payment.status = TransactionStatus.CANCELED

        order.updated_at = now_utc
        session.add(order)
        if payment:
            payment.updated_at = now_utc
            session.add(payment)
        session.commit()
        session.refresh(order)
        logging.info(f"PEDIDO >>> Pedido {order.order_number} atualizado para {order.status.value} (gateway: {gateway_status})")

    def build_details(self, token: str, order: Optional[Order], details: Optional[GatewayTransactionDetails]) -> OrderDetailsRead:
        items = None
        if details and details.items:
            items = [OrderItemRead(name=item.name, quantity=item.quantity, price=item.price) for item in details.items]
        elif order:
            items = [OrderItemRead(name=item.name, quantity=item.quantity, price=item.unit_price) for item in order.items]

        total = details.total if details and details.total is not None else (order.total_amount if order else 0.0)

        return OrderDetailsRead(
            id=(details.transaction_id if details and details.transaction_id else None) or (order.order_number if order else token),
            total=f"{total:.2f}",
            status=details.status if details else order.status.value,
            customer_name=(details.customer_name if details else None) or (order.customer_name if order else None),
            customer_email=(details.customer_email if details else None) or (order.customer_email if order else None),
            shipping_address=(details.shipping_address if details else None) or (order.shipping_address if order else None),
            items=items or [],
            payment_method=(details.payment_method if details else None)
            or (PAYMENT_METHOD_NAMES.get(order.payment_method, order.payment_method) if order else None),
        )

    def get_order_by_token(
        self,
        token: str,
        session: Session = Depends(db_session),
        gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        order = session.exec(select(Order).where(Order.transaction_token == token)).first()

        details = None
        try:
            details = gateway.get_transaction(token)
        except GatewayTransactionNotFound:
            logging.warning(f"PEDIDO >>> Transação {token} não encontrada no gateway")
        except GatewayError as e:
            logging.error(f"PEDIDO >>> Falha ao consultar a transação {token}: {e.message}")

        if not details and not order:
            raise AppHttpException(status_code=status.HTTP_404_NOT_FOUND, detail="Pedido não encontrado")

        if details and order:
            try:
                self.sync_order_status(session, order, details.status)
            except Exception as e:
                session.rollback()
                logging.error(f"PEDIDO >>> Erro ao sincronizar o pedido {order.order_number}: {e}", exc_info=True)

        return self.build_details(token, order, details)
