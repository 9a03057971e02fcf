import logging
from typing import Any, List, Optional

import httpx

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.checkout import GatewayResponseInvalid, NotFound, PaymentDeclined, TransportError
from vitrine.helpers.session.session_id import SESSION_HEADER
from vitrine.storefront.session import SessionContext

CONNECTION_ERROR_MESSAGE = "Não foi possível conectar ao servidor. Verifique sua conexão."


def error_message(response: httpx.Response) -> Optional[str]:
    """Mensagem de erro do corpo `{message}` devolvido pelo backend."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message") or body.get("detail")
    return None


class StorefrontApi:
    """
    Cliente HTTP do storefront para o backend da loja.

    Toda requisição leva o cabeçalho de sessão do visitante; falhas de rede
    viram `TransportError` e respostas de erro são traduzidas por operação.
    """

    def __init__(
        self,
        session: SessionContext,
        client: Optional[httpx.AsyncClient] = None,
        configuration: Optional[Configuration] = None,
    ):
        configuration = configuration or Configuration()
        self.session = session
        self.client = client or httpx.AsyncClient(
            base_url=configuration.storefront_api_url,
            timeout=configuration.http_timeout_seconds,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        headers[SESSION_HEADER] = self.session.session_id
        try:
            return await self.client.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logging.error(f"API >>> Falha de conexão em {method} {path}: {e}")
            raise TransportError(CONNECTION_ERROR_MESSAGE)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            raise GatewayResponseInvalid("Resposta da API de pagamento inválida.")

    async def create_payment(self, payload: dict, declined_message: str = "Seu pagamento foi recusado.") -> dict:
        response = await self._request("POST", "/api/create-payment", json=payload)
        if response.is_error:
            message = error_message(response) or declined_message
            logging.warning(f"PAGAMENTO >>> Pagamento recusado ({response.status_code}): {message}")
            raise PaymentDeclined(message)
        return self._json(response)

    async def get_order(self, token: str) -> dict:
        response = await self._request("GET", f"/api/orders/{token}")
        if response.status_code == 404:
            raise NotFound(error_message(response) or "Pedido não encontrado")
        if response.is_error:
            raise TransportError(error_message(response) or "Não foi possível verificar o status.")
        return self._json(response)

    async def get_cart(self) -> List[dict]:
        response = await self._request("GET", "/api/cart")
        if response.is_error:
            raise TransportError(error_message(response) or "Não foi possível carregar o carrinho.")
        return self._json(response)

    async def add_to_cart(self, product_id: int, quantity: int = 1) -> dict:
        response = await self._request("POST", "/api/cart", json={"productId": product_id, "quantity": quantity})
        if response.status_code == 404:
            raise NotFound(error_message(response) or "Produto inválido ou inativo")
        if response.is_error:
            raise TransportError(error_message(response) or "Não foi possível adicionar o item.")
        return self._json(response)

    async def update_cart_item(self, item_id: int, quantity: int) -> dict:
        response = await self._request("PUT", f"/api/cart/{item_id}", json={"quantity": quantity})
        if response.status_code == 404:
            raise NotFound(error_message(response) or "Item não encontrado no carrinho")
        if response.is_error:
            raise TransportError(error_message(response) or "Não foi possível atualizar o item.")
        return self._json(response)

    async def remove_cart_item(self, item_id: int) -> None:
        response = await self._request("DELETE", f"/api/cart/{item_id}")
        if response.status_code == 404:
            raise NotFound(error_message(response) or "Item não encontrado no carrinho")
        if response.is_error:
            raise TransportError(error_message(response) or "Não foi possível remover o item.")

    async def clear_cart(self) -> None:
        response = await self._request("DELETE", "/api/cart")
        if response.is_error:
            raise TransportError(error_message(response) or "Não foi possível limpar o carrinho.")
