from typing import MutableMapping, Optional

from vitrine.helpers.session.session_id import generate_session_id

SESSION_ID_KEY = "ecommerce-session-id"

# Chaves do rascunho de checkout guardadas no armazenamento da sessão
PIX_PAYMENT_KEY = "pixPaymentInfo"
CHECKOUT_FORM_KEY = "checkoutFormData"
CHECKOUT_ADDRESS_KEY = "checkoutAddressFields"
CHECKOUT_STEP_KEY = "checkoutStep"
CHECKOUT_CEP_KEY = "checkoutCepLookedUp"

CHECKOUT_SESSION_KEYS = (
    PIX_PAYMENT_KEY,
    CHECKOUT_FORM_KEY,
    CHECKOUT_ADDRESS_KEY,
    CHECKOUT_STEP_KEY,
    CHECKOUT_CEP_KEY,
)


class SessionContext:
    """
    Identidade do visitante para o carrinho. O id é criado no primeiro uso,
    lido a cada requisição e descartado quando o pedido é confirmado.
    """

    def __init__(self, storage: Optional[MutableMapping[str, str]] = None):
        self.storage = storage if storage is not None else {}

    @property
    def session_id(self) -> str:
        session_id = self.storage.get(SESSION_ID_KEY)
        if not session_id:
            session_id = generate_session_id()
            self.storage[SESSION_ID_KEY] = session_id
        return session_id

    @property
    def has_session(self) -> bool:
        return bool(self.storage.get(SESSION_ID_KEY))

    def clear(self) -> None:
        self.storage.pop(SESSION_ID_KEY, None)


def clear_checkout_state(storage: MutableMapping[str, str]) -> None:
    for key in CHECKOUT_SESSION_KEYS:
        storage.pop(key, None)
