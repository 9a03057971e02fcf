# tests/test_tokenizer.py

import threading
import unittest
from urllib.parse import parse_qs

import httpx

from support import make_configuration
from vitrine.core.exceptions.checkout import IntegrationUnavailable, PaymentDeclined
from vitrine.storefront.tokenizer import CardData, HttpCardTokenizer, tokenize_card

CARD = CardData(holder_name="MARIA SILVA", number="4111 1111 1111 1111", expiry="12/30", cvc="123")


class ScriptedTokenizer:
    """Simula o script de tokenização: responde no callback com o que foi programado."""

    def __init__(self, *responses, in_thread=False):
        self.responses = responses
        self.in_thread = in_thread
        self.params = []

    def get_card_token(self, params, callback):
        self.params.append(params)

        def respond():
            for response in self.responses:
                callback(response)

        if self.in_thread:
            threading.Thread(target=respond).start()
        else:
            respond()


class TestTokenizeCard(unittest.IsolatedAsyncioTestCase):

    async def test_token_gerado(self):
        tokenizer = ScriptedTokenizer({"token": "tok_123"})

        token = await tokenize_card(tokenizer, CARD, "fp-abc")

        self.assertEqual(token, "tok_123")
        self.assertEqual(
            tokenizer.params[0],
            {
                "card_holder_name": "MARIA SILVA",
                "card_number": "4111111111111111",
                "card_expire_date": "12/30",
                "card_cvv": "123",
            },
        )

    async def test_erro_do_tokenizador_vira_pagamento_recusado(self):
        tokenizer = ScriptedTokenizer({"error": {"message": "Cartão inválido"}})

        with self.assertRaises(PaymentDeclined) as ctx:
            await tokenize_card(tokenizer, CARD, "fp-abc")
        self.assertEqual(ctx.exception.message, "Cartão inválido")

    async def test_erro_sem_mensagem_usa_padrao(self):
        tokenizer = ScriptedTokenizer({"error": {}})
        with self.assertRaises(PaymentDeclined) as ctx:
            await tokenize_card(tokenizer, CARD, "fp-abc")
        self.assertEqual(ctx.exception.message, "Dados do cartão inválidos.")

    async def test_callback_repetido_e_ignorado(self):
        """
        Cenário: o script chama o callback duas vezes; só a primeira resposta vale.
        """
        tokenizer = ScriptedTokenizer({"token": "tok_primeiro"}, {"error": {"message": "tarde demais"}})
        self.assertEqual(await tokenize_card(tokenizer, CARD, "fp-abc"), "tok_primeiro")

    async def test_callback_em_outra_thread(self):
        tokenizer = ScriptedTokenizer({"token": "tok_thread"}, in_thread=True)
        self.assertEqual(await tokenize_card(tokenizer, CARD, "fp-abc"), "tok_thread")

    async def test_sem_script_ou_sem_fingerprint(self):
        with self.assertRaises(IntegrationUnavailable):
            await tokenize_card(None, CARD, "fp-abc")
        with self.assertRaises(IntegrationUnavailable):
            await tokenize_card(ScriptedTokenizer({"token": "x"}), CARD, "")
        with self.assertRaises(IntegrationUnavailable):
            await tokenize_card(object(), CARD, "fp-abc")


class TestHttpCardTokenizer(unittest.IsolatedAsyncioTestCase):

    def _tokenizer(self, response: httpx.Response):
        self.requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return response

        configuration = make_configuration(
            card_tokenization_url="https://gateway.example.com/api/v3/card/token",
            vindi_api_token="conta-123",
        )
        return HttpCardTokenizer(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            configuration=configuration,
        )

    async def test_token_do_endpoint(self):
        tokenizer = self._tokenizer(httpx.Response(200, json={"data_response": {"token": "tok_http"}}))

        token = await tokenize_card(tokenizer, CARD, "fp-abc")

        self.assertEqual(token, "tok_http")
        form = parse_qs(self.requests[0].content.decode())
        self.assertEqual(form["token_account"], ["conta-123"])
        self.assertEqual(form["card_number"], ["4111111111111111"])

    async def test_erro_do_endpoint(self):
        tokenizer = self._tokenizer(
            httpx.Response(422, json={"error_response": {"general_errors": [{"message": "Cartão inválido"}]}})
        )
        with self.assertRaises(PaymentDeclined) as ctx:
            await tokenize_card(tokenizer, CARD, "fp-abc")
        self.assertEqual(ctx.exception.message, "Cartão inválido")
