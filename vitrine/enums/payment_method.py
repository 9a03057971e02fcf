from enum import Enum

class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    PIX = "pix"

    @classmethod
    def parse(cls, value: str) -> "PaymentMethod":
        normalized = (value or "").strip().lower()
        if normalized in ("card", "cartao", "cartão", cls.CREDIT_CARD.value):
            return cls.CREDIT_CARD
        if normalized == cls.PIX.value:
            return cls.PIX
        raise ValueError(f"Método de pagamento inválido: {value}")
