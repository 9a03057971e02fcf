from enum import Enum
from typing import Iterable, Optional

from vitrine.helpers.payment.status import StatusOutcome, StatusVocabulary

__all__ = ["PaymentMethodKind", "StatusOutcome", "StatusVocabulary", "classify_payment_method", "payment_method_label"]


class PaymentMethodKind(str, Enum):
    PIX = "pix"
    CREDIT_CARD = "credit_card"
    UNKNOWN = "unknown"


PAYMENT_METHOD_LABELS = {
    PaymentMethodKind.PIX: "PIX",
    PaymentMethodKind.CREDIT_CARD: "Cartão de Crédito",
    PaymentMethodKind.UNKNOWN: "Não informado",
}


def classify_payment_method(method: Optional[str], card_keywords: Iterable[str]) -> PaymentMethodKind:
    """Classifica o texto livre do método de pagamento (ex.: "Pix", "Cartão de Crédito (visa)")."""
    normalized = (method or "").strip().lower()
    if not normalized:
        return PaymentMethodKind.UNKNOWN
    if "pix" in normalized:
        return PaymentMethodKind.PIX
    if any(keyword in normalized for keyword in card_keywords):
        return PaymentMethodKind.CREDIT_CARD
    return PaymentMethodKind.UNKNOWN


def payment_method_label(kind: PaymentMethodKind) -> str:
    return PAYMENT_METHOD_LABELS[kind]
