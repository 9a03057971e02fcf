"""
Acompanhamento do PIX gerado: contagem regressiva até a expiração e
consulta periódica do status do pedido.

As duas rotinas rodam como tarefas asyncio sobre um retrato imutável da
transação (`TrackedTransaction`). Qualquer tarefa cujo retrato não seja
mais o vigente não altera o estado, e trocar a transação cancela as duas.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import MutableMapping, Optional, Union

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.checkout import CheckoutError, NotFound
from vitrine.helpers.order.formatters import format_countdown
from vitrine.storefront.cart_store import CartStore
from vitrine.storefront.orchestrator import Clock, PaymentOrchestrator, PixTransaction, utc_now
from vitrine.storefront.status import StatusOutcome, StatusVocabulary
from vitrine.storefront.ui import Navigator, Notifier

EXPIRED_LABEL = "Expirado"


@dataclass(frozen=True)
class TrackedTransaction:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Generating:
    pass


@dataclass(frozen=True)
class Pending:
    transaction: PixTransaction


@dataclass(frozen=True)
class Paid:
    transaction: PixTransaction


@dataclass(frozen=True)
class Expired:
    transaction: PixTransaction


@dataclass(frozen=True)
class Canceled:
    transaction: PixTransaction


@dataclass(frozen=True)
class Failed:
    message: str


PixState = Union[Idle, Generating, Pending, Paid, Expired, Canceled, Failed]


@dataclass(frozen=True)
class PixView:
    title: str
    description: str
    action_label: Optional[str] = None


def success_url(token: str) -> str:
    return f"/checkout-success?orderId={token}"


class PixPaymentTracker:
    def __init__(
        self,
        orchestrator: PaymentOrchestrator,
        cart_store: CartStore,
        notifier: Notifier,
        navigator: Navigator,
        storage: MutableMapping[str, str],
        vocabulary: Optional[StatusVocabulary] = None,
        clock: Clock = utc_now,
        configuration: Optional[Configuration] = None,
    ):
        configuration = configuration or Configuration()
        self.orchestrator = orchestrator
        self.api = orchestrator.api
        self.cart_store = cart_store
        self.notifier = notifier
        self.navigator = navigator
        self.storage = storage
        self.vocabulary = vocabulary or StatusVocabulary.from_configuration(configuration)
        self.clock = clock
        self.poll_interval = configuration.pix_poll_interval_seconds
        self.countdown_interval = configuration.pix_countdown_interval_seconds

        self.state: PixState = Idle()
        self.time_left = ""
        self._tracked: Optional[TrackedTransaction] = None
        self._countdown_task: Optional[asyncio.Task] = None
        self._polling_task: Optional[asyncio.Task] = None

    # Geração

    async def start(self) -> PixState:
        return await self._generate(force=False)

    async def regenerate(self) -> PixState:
        """Descarta o PIX atual (expirado, cancelado ou com falha) e gera outro."""
        return await self._generate(force=True)

    async def _generate(self, force: bool) -> PixState:
        if isinstance(self.state, Generating):
            return self.state

        self._stop_tasks()
        self.state = Generating()
        self.time_left = ""
        try:
            transaction = await self.orchestrator.generate_pix(force=force)
        except CheckoutError as e:
            logging.error(f"PIX >>> Erro ao gerar PIX: {e.message}")
            self.notifier.toast("Erro ao gerar PIX", e.message, "destructive")
            self.state = Failed(e.message)
            return self.state

        self.state = Pending(transaction)
        tracked = TrackedTransaction(transaction.transaction_token, transaction.expires_at)
        self._tracked = tracked
        if self.tick(tracked):
            self._countdown_task = asyncio.create_task(self._countdown_loop(tracked))
            self._polling_task = asyncio.create_task(self._polling_loop(tracked))
        return self.state

    # Tarefas

    def _is_current(self, tracked: Optional[TrackedTransaction]) -> bool:
        return (
            tracked is not None
            and tracked is self._tracked
            and isinstance(self.state, Pending)
            and self.state.transaction.transaction_token == tracked.token
        )

    def _stop_tasks(self):
        self._tracked = None
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in (self._countdown_task, self._polling_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._countdown_task = None
        self._polling_task = None

    async def close(self):
        tasks = [task for task in (self._countdown_task, self._polling_task) if task is not None]
        self._stop_tasks()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _countdown_loop(self, tracked: TrackedTransaction):
        while self._is_current(tracked):
            await asyncio.sleep(self.countdown_interval)
            if not self.tick(tracked):
                break

    async def _polling_loop(self, tracked: TrackedTransaction):
        while self._is_current(tracked):
            await asyncio.sleep(self.poll_interval)
            await self.poll_once(tracked)

    # Passos

    def tick(self, tracked: Optional[TrackedTransaction] = None) -> bool:
        """Atualiza a contagem regressiva. Retorna False quando não há mais o que contar."""
        tracked = tracked or self._tracked
        if not self._is_current(tracked):
            return False

        remaining = (tracked.expires_at - self.clock()).total_seconds()
        if remaining <= 0:
            self.time_left = EXPIRED_LABEL
            self.state = Expired(self.state.transaction)
            self._stop_tasks()
            logging.info(f"PIX >>> Transação {tracked.token} expirou")
            return False

        self.time_left = format_countdown(remaining)
        return True

    async def poll_once(self, tracked: Optional[TrackedTransaction] = None) -> PixState:
        """Uma consulta de status em segundo plano; falhas são apenas registradas."""
        tracked = tracked or self._tracked
        if not self.tick(tracked):
            return self.state

        try:
            data = await self.api.get_order(tracked.token)
        except CheckoutError as e:
            logging.warning(f"PIX >>> Erro no polling da transação {tracked.token}: {e.message}")
            return self.state

        if self._is_current(tracked):
            await self._apply_status(tracked, self._status_of(data), manual=False)
        return self.state

    async def check_now(self) -> PixState:
        """Verificação manual solicitada pelo cliente."""
        tracked = self._tracked
        if not self._is_current(tracked):
            return self.state

        try:
            data = await self.api.get_order(tracked.token)
        except NotFound:
            self.notifier.toast("Erro", "Não foi possível verificar o status.", "destructive")
            return self.state
        except CheckoutError as e:
            self.notifier.toast("Erro", e.message, "destructive")
            return self.state

        if self._is_current(tracked):
            await self._apply_status(tracked, self._status_of(data), manual=True)
        return self.state

    @staticmethod
    def _status_of(data) -> Optional[object]:
        if not isinstance(data, dict):
            return None
        return data.get("status")

    async def _apply_status(self, tracked: TrackedTransaction, status: Optional[object], manual: bool):
        outcome = self.vocabulary.classify(status)
        transaction = self.state.transaction

        if outcome == StatusOutcome.PAID:
            self.state = Paid(transaction)
            self._stop_tasks()
            logging.info(f"PIX >>> Pagamento confirmado para a transação {tracked.token} ({status})")
            try:
                await self.cart_store.clear()
            except CheckoutError as e:
                logging.warning(f"PIX >>> Não foi possível limpar o carrinho: {e.message}")
            self.storage.clear()
            self.navigator.navigate(success_url(tracked.token))
        elif outcome == StatusOutcome.CANCELED:
            self.state = Canceled(transaction)
            self._stop_tasks()
            self.orchestrator.mark_canceled()
            logging.info(f"PIX >>> Transação {tracked.token} cancelada ({status})")
            if manual:
                self.notifier.toast(
                    "Pagamento Cancelado",
                    "Este PIX foi cancelado. Gere um novo código para continuar.",
                )
        elif manual:
            self.notifier.toast(
                "Pagamento Pendente",
                "Ainda não recebemos a confirmação do seu pagamento. Por favor, aguarde.",
            )

    # Exibição

    @property
    def title(self) -> str:
        return self.view().title

    def view(self) -> PixView:
        state = self.state
        if isinstance(state, Canceled):
            return PixView(
                "PIX Cancelado",
                "Este código PIX foi cancelado. Por favor, gere um novo para continuar com a compra.",
                "Gerar Novo PIX",
            )
        if isinstance(state, Expired):
            return PixView(
                "PIX Expirado",
                "O tempo para pagamento deste código PIX terminou. Por favor, gere um novo.",
                "Gerar Novo PIX",
            )
        if isinstance(state, Failed):
            return PixView("Falha ao Gerar PIX", state.message, "Tentar Novamente")
        if isinstance(state, Generating):
            return PixView("Gerando PIX", "Aguarde enquanto geramos o seu código PIX.")
        if isinstance(state, Paid):
            return PixView("Pagamento Aprovado!", "Seu pedido foi processado com sucesso.")
        if isinstance(state, Pending):
            return PixView("Pague com PIX", f"Tempo restante: {self.time_left}", "Já fiz o pagamento")
        return PixView("Pague com PIX", "")
