from datetime import datetime, timezone
import logging
from typing import Optional
from sqlmodel import Session, select

from vitrine.database.connection import session_scope
from vitrine.enums.payment_method import PaymentMethod
from vitrine.enums.transaction_status import TransactionStatus
from vitrine.models.payment.payment import Payment


def expire_pending_pix(session: Session, now: Optional[datetime] = None) -> int:
    """Marca como expirados os PIX pendentes cujo prazo já passou.

    O pedido continua pendente: o cliente pode gerar um novo PIX para ele.
    """
    now = now or datetime.now(timezone.utc)

    pending_payments = session.exec(
        select(Payment).where(
            Payment.status == TransactionStatus.PENDING,
            Payment.method == PaymentMethod.PIX.value,
            Payment.expires_at.is_not(None),
        )
    ).all()

    expired = 0
    for payment in pending_payments:
        # SQLite devolve datetimes sem tzinfo
        if not payment.is_expired(now):
            continue

        time_diff = now - payment.expires_at_utc
        payment.status = TransactionStatus.EXPIRED
        payment.updated_at = now
        session.add(payment)
        expired += 1
        logging.info(f"PAGAMENTO >>> Pagamento {payment.id} expirado. Tempo desde expiração: {time_diff.total_seconds()} segundos.")

    session.commit()
    return expired


def cancel_expired_payments():
    with session_scope() as session:
        expired = expire_pending_pix(session)
        logging.info(f"PAGAMENTO >>> Expiração de {expired} pagamentos PIX concluída.")
