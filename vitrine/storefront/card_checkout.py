import logging
from typing import MutableMapping, Optional

from vitrine.core.exceptions.checkout import CheckoutError, IntegrationUnavailable, ValidationError
from vitrine.storefront.orchestrator import CardPaymentResult, PaymentOrchestrator
from vitrine.storefront.pix_tracker import success_url
from vitrine.storefront.session import clear_checkout_state
from vitrine.storefront.tokenizer import CardData, CardTokenizer
from vitrine.storefront.ui import Navigator, Notifier


class CardCheckout:
    """Envio do formulário de cartão: um envio por vez, erros viram notificação."""

    def __init__(
        self,
        orchestrator: PaymentOrchestrator,
        tokenizer: Optional[CardTokenizer],
        notifier: Notifier,
        navigator: Navigator,
        storage: MutableMapping[str, str],
    ):
        self.orchestrator = orchestrator
        self.tokenizer = tokenizer
        self.notifier = notifier
        self.navigator = navigator
        self.storage = storage
        self.is_processing = False

    async def submit(self, card: CardData, fingerprint: Optional[str]) -> Optional[CardPaymentResult]:
        if self.is_processing:
            return None

        self.is_processing = True
        try:
            result = await self.orchestrator.pay_with_card(card, fingerprint, self.tokenizer)
        except CheckoutError as e:
            logging.warning(f"PAGAMENTO >>> Pagamento com cartão não concluído: {e.message}")
            # Falhas de integração e de validação mantêm o próprio título
            title = e.title if isinstance(e, (IntegrationUnavailable, ValidationError)) else "Erro no Pagamento"
            self.notifier.toast(title, e.message, "destructive")
            return None
        finally:
            self.is_processing = False

        self.notifier.toast("Pagamento Aprovado!", "Seu pedido foi processado com sucesso.")
        clear_checkout_state(self.storage)
        self.navigator.navigate(success_url(result.transaction_token))
        return result
