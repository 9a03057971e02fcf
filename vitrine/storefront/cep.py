import logging
from typing import Optional

import httpx

from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.checkout import NotFound, TransportError
from vitrine.helpers.order.formatters import only_digits


class ViaCepClient:
    """Consulta de endereço por CEP no ViaCEP (`{erro: true}` significa CEP inexistente)."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, configuration: Optional[Configuration] = None):
        configuration = configuration or Configuration()
        self.base_url = configuration.viacep_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=configuration.http_timeout_seconds)

    async def lookup(self, cep: str) -> dict:
        digits = only_digits(cep)
        if len(digits) != 8:
            raise NotFound("CEP inválido.", title="Erro ao buscar CEP")
        try:
            response = await self.client.get(f"{self.base_url}/{digits}/json/")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logging.warning(f"CEP >>> Falha ao consultar o CEP {digits}: {e}")
            raise TransportError("Não foi possível buscar o endereço. Verifique o CEP.", title="Erro ao buscar CEP")

        if data.get("erro"):
            raise NotFound("CEP não encontrado.", title="Erro ao buscar CEP")

        return {
            "rua": data.get("logradouro") or "",
            "bairro": data.get("bairro") or "",
            "cidade": data.get("localidade") or "",
            "estado": data.get("uf") or "",
        }

    async def aclose(self):
        await self.client.aclose()
