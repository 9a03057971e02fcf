import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Set

import httpx

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.checkout import IntegrationUnavailable, PaymentDeclined
from vitrine.helpers.order.formatters import only_digits

INVALID_CARD_MESSAGE = "Dados do cartão inválidos."
SCRIPT_NOT_LOADED_MESSAGE = "O script de pagamento não foi carregado corretamente. Por favor, recarregue a página."

TokenCallback = Callable[[dict], None]


class CardTokenizer(Protocol):
    def get_card_token(self, params: dict, callback: TokenCallback) -> None:
        ...


@dataclass(frozen=True)
class CardData:
    holder_name: str
    number: str
    expiry: str  # MM/AA
    cvc: str

    def to_params(self) -> dict:
        month, _, year = self.expiry.partition("/")
        return {
            "card_holder_name": self.holder_name,
            "card_number": "".join(self.number.split()),
            "card_expire_date": f"{month}/{year}",
            "card_cvv": self.cvc,
        }


async def tokenize_card(tokenizer: Optional[CardTokenizer], card: CardData, fingerprint: Optional[str]) -> str:
    """
    Converte a API de callback do tokenizador em uma corrotina.

    O futuro é resolvido uma única vez: chamadas repetidas do callback são
    ignoradas. O callback pode vir de outra thread.
    """
    if tokenizer is None or not callable(getattr(tokenizer, "get_card_token", None)) or not fingerprint:
        raise IntegrationUnavailable(SCRIPT_NOT_LOADED_MESSAGE)

    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def resolve(response: dict):
        if future.done():
            return
        error = (response or {}).get("error")
        token = (response or {}).get("token")
        if error or not token:
            message = (error or {}).get("message") if isinstance(error, dict) else None
            future.set_exception(PaymentDeclined(message or INVALID_CARD_MESSAGE))
        else:
            future.set_result(token)

    def callback(response: dict):
        loop.call_soon_threadsafe(resolve, response)

    tokenizer.get_card_token(card.to_params(), callback)
    return await future


class HttpCardTokenizer:
    """Tokenizador que envia os dados do cartão para o endpoint de tokenização do gateway."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, configuration: Optional[Configuration] = None):
        configuration = configuration or Configuration()
        self.url = configuration.card_tokenization_url
        self.token_account = configuration.vindi_api_token
        self.client = client or httpx.AsyncClient(timeout=configuration.http_timeout_seconds)
        self._tasks: Set[asyncio.Task] = set()

    def get_card_token(self, params: dict, callback: TokenCallback) -> None:
        task = asyncio.get_running_loop().create_task(self._request_token(params, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _request_token(self, params: dict, callback: TokenCallback):
        if not self.url:
            callback({"error": {"message": SCRIPT_NOT_LOADED_MESSAGE}})
            return

        body = {**params, "token_account": self.token_account}
        try:
            response = await self.client.post(self.url, data=body)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logging.error(f"PAGAMENTO >>> Falha na tokenização do cartão final {only_digits(params.get('card_number'))[-4:]}: {e}")
            callback({"error": {"message": "Não foi possível validar o cartão. Tente novamente."}})
            return

        token = data.get("token") or (data.get("data_response") or {}).get("token")
        if response.is_error or not token:
            errors = (data.get("error_response") or {}).get("general_errors") or []
            message = errors[0].get("message") if errors and isinstance(errors[0], dict) else data.get("message")
            callback({"error": {"message": message or INVALID_CARD_MESSAGE}})
            return

        callback({"token": token})
