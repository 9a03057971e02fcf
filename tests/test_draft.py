# tests/test_draft.py

import asyncio
import json
import unittest

import httpx

from support import make_configuration, sample_customer, sample_shipping
from vitrine.core.exceptions.checkout import ValidationError
from vitrine.storefront.cep import ViaCepClient
from vitrine.storefront.draft import CheckoutDraft, CheckoutStep, mask_cep, mask_cpf, mask_phone
from vitrine.storefront.session import CHECKOUT_CEP_KEY, CHECKOUT_FORM_KEY, CHECKOUT_STEP_KEY
from vitrine.storefront.ui import LoggingNotifier

VIACEP_PAULISTA = {
    "cep": "01310-100",
    "logradouro": "Avenida Paulista",
    "bairro": "Bela Vista",
    "localidade": "São Paulo",
    "uf": "SP",
}


class TestMasks(unittest.TestCase):

    def test_mascara_de_cpf(self):
        self.assertEqual(mask_cpf("12345678909"), "123.456.789-09")
        self.assertEqual(mask_cpf("1234"), "123.4")
        self.assertEqual(mask_cpf("123.456.789-0999"), "123.456.789-09")

    def test_mascara_de_telefone(self):
        self.assertEqual(mask_phone("11987654321"), "(11) 98765-4321")
        self.assertEqual(mask_phone("1133334444"), "(11) 3333-4444")
        self.assertEqual(mask_phone("119"), "(11) 9")
        self.assertEqual(mask_phone("1"), "(1")
        self.assertEqual(mask_phone(""), "")

    def test_mascara_de_cep(self):
        self.assertEqual(mask_cep("01310100"), "01310-100")
        self.assertEqual(mask_cep("01310"), "01310")


class TestCheckoutDraft(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.viacep_requests = []
        self.viacep_body = VIACEP_PAULISTA

        def handler(request: httpx.Request) -> httpx.Response:
            self.viacep_requests.append(request)
            return httpx.Response(200, json=self.viacep_body)

        configuration = make_configuration(viacep_url="https://viacep.com.br/ws")
        self.cep_client = ViaCepClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            configuration=configuration,
        )
        self.storage = {}
        self.notifier = LoggingNotifier()
        self.draft = CheckoutDraft(self.storage, self.cep_client, self.notifier)

    async def asyncTearDown(self):
        await self.cep_client.aclose()

    async def _fill_valid_draft(self):
        customer = sample_customer()
        self.draft.update_customer(name=customer.name, email=customer.email, cpf="12345678909", phone="11987654321")
        await self.draft.set_cep("01310100")
        self.draft.update_shipping(numero="1000")

    async def test_busca_de_cep_preenche_endereco(self):
        """
        Cenário: CEP com 8 dígitos dispara a consulta e confirma o endereço.
        """
        confirmed = await self.draft.set_cep("01310100")

        self.assertTrue(confirmed)
        self.assertEqual(str(self.viacep_requests[0].url), "https://viacep.com.br/ws/01310100/json/")
        self.assertEqual(self.draft.shipping.cep, "01310-100")
        self.assertEqual(self.draft.shipping.rua, "Avenida Paulista")
        self.assertEqual(self.draft.shipping.estado, "SP")
        self.assertTrue(json.loads(self.storage[CHECKOUT_CEP_KEY]))

    async def test_cep_inexistente_notifica_e_nao_confirma(self):
        self.viacep_body = {"erro": True}

        confirmed = await self.draft.set_cep("99999999")

        self.assertFalse(confirmed)
        self.assertFalse(self.draft.cep_looked_up)
        self.assertEqual(self.notifier.history[-1].title, "Erro ao buscar CEP")

    async def test_cep_incompleto_nao_consulta(self):
        await self.draft.set_cep("0131")
        self.assertEqual(self.viacep_requests, [])
        self.assertFalse(self.draft.cep_looked_up)

    async def test_alterar_cep_reinicia_confirmacao(self):
        await self.draft.set_cep("01310100")
        self.assertTrue(self.draft.cep_looked_up)

        await self.draft.set_cep("0131010")

        self.assertFalse(self.draft.cep_looked_up)
        with self.assertRaises(ValidationError) as ctx:
            self.draft.validate()
        self.assertEqual(ctx.exception.title, "Dados Incompletos")

    async def test_cep_alterado_durante_busca_descarta_resultado_antigo(self):
        """
        Cenário: o cliente troca o CEP enquanto a busca anterior ainda não respondeu.
        O endereço do CEP antigo não pode confirmar o novo; o CEP atual é consultado em seguida.
        """
        # ARRANGE
        released = asyncio.Event()
        started = asyncio.Event()
        paths = []

        async def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if "01310100" in request.url.path:
                started.set()
                await released.wait()
                return httpx.Response(200, json=VIACEP_PAULISTA)
            return httpx.Response(200, json={"erro": True})

        cep_client = ViaCepClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            configuration=make_configuration(viacep_url="https://viacep.com.br/ws"),
        )
        draft = CheckoutDraft({}, cep_client, self.notifier)

        # ACT
        first = asyncio.create_task(draft.set_cep("01310100"))
        await started.wait()
        second = await draft.set_cep("99999999")
        released.set()
        confirmed = await first
        await cep_client.aclose()

        # ASSERT
        self.assertFalse(second)
        self.assertFalse(confirmed)
        self.assertEqual(paths, ["/ws/01310100/json/", "/ws/99999999/json/"])
        self.assertEqual(draft.shipping.cep, "99999-999")
        self.assertNotEqual(draft.shipping.rua, "Avenida Paulista")
        self.assertFalse(draft.cep_looked_up)
        self.assertFalse(draft.is_cep_loading)
        self.assertEqual(self.notifier.history[-1].title, "Erro ao buscar CEP")

    async def test_cep_incompleto_durante_busca_nao_confirma(self):
        """
        Cenário: o cliente apaga um dígito enquanto a busca responde; nada é confirmado nem consultado de novo.
        """
        released = asyncio.Event()
        started = asyncio.Event()
        paths = []

        async def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            started.set()
            await released.wait()
            return httpx.Response(200, json=VIACEP_PAULISTA)

        cep_client = ViaCepClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            configuration=make_configuration(viacep_url="https://viacep.com.br/ws"),
        )
        draft = CheckoutDraft({}, cep_client, self.notifier)

        first = asyncio.create_task(draft.set_cep("01310100"))
        await started.wait()
        await draft.set_cep("0131010")
        released.set()
        confirmed = await first
        await cep_client.aclose()

        self.assertFalse(confirmed)
        self.assertEqual(paths, ["/ws/01310100/json/"])
        self.assertEqual(draft.shipping.cep, "01310-10")
        self.assertIsNone(draft.shipping.rua)
        self.assertFalse(draft.cep_looked_up)

    async def test_envio_valido_avanca_para_pagamento(self):
        await self._fill_valid_draft()

        url = self.draft.submit_details(cart_count=1)

        self.assertEqual(url, "/checkout?step=payment")
        self.assertEqual(self.draft.step, CheckoutStep.PAYMENT)
        self.assertEqual(self.storage[CHECKOUT_STEP_KEY], "payment")

    async def test_ordem_das_validacoes(self):
        """
        Cenário: dados incompletos vêm antes de CPF, que vem antes de telefone.
        """
        with self.assertRaises(ValidationError) as ctx:
            self.draft.submit_details(cart_count=1)
        self.assertEqual(ctx.exception.title, "Dados Incompletos")

        await self._fill_valid_draft()
        self.draft.update_customer(cpf="1234567890", phone="119876")
        with self.assertRaises(ValidationError) as ctx:
            self.draft.submit_details(cart_count=1)
        self.assertEqual(ctx.exception.title, "CPF Inválido")

        self.draft.update_customer(cpf="12345678909")
        with self.assertRaises(ValidationError) as ctx:
            self.draft.submit_details(cart_count=1)
        self.assertEqual(ctx.exception.title, "Telefone Inválido")
        self.assertEqual(self.draft.step, CheckoutStep.DETAILS)

    async def test_carrinho_vazio_bloqueia_envio(self):
        await self._fill_valid_draft()
        with self.assertRaises(ValidationError) as ctx:
            self.draft.submit_details(cart_count=0)
        self.assertEqual(ctx.exception.title, "Carrinho Vazio")

    async def test_rascunho_sobrevive_ao_recarregamento(self):
        await self._fill_valid_draft()
        self.draft.submit_details(cart_count=1)

        reloaded = CheckoutDraft(self.storage, self.cep_client, self.notifier)
        step = reloaded.resume("/checkout?step=payment")

        self.assertEqual(step, CheckoutStep.PAYMENT)
        self.assertEqual(reloaded.customer.cpf, "123.456.789-09")
        self.assertEqual(reloaded.shipping.rua, "Avenida Paulista")

    def test_url_de_pagamento_sem_rascunho_volta_para_dados(self):
        step = self.draft.resume("/checkout?step=payment")
        self.assertEqual(step, CheckoutStep.DETAILS)

    def test_rascunho_corrompido_e_descartado(self):
        self.storage[CHECKOUT_FORM_KEY] = "{não é json"
        self.storage["checkoutAddressFields"] = "{}"
        self.assertEqual(self.draft.resume("/checkout?step=payment"), CheckoutStep.DETAILS)
        self.assertIsNone(self.draft.customer.name)

    def test_cliente_conhecido_dispensa_busca_de_cep(self):
        self.draft.prefill(sample_customer(), sample_shipping())
        self.assertTrue(self.draft.cep_looked_up)
        self.draft.validate()

    async def test_voltar_para_dados(self):
        await self._fill_valid_draft()
        self.draft.submit_details(cart_count=1)
        self.assertEqual(self.draft.back_to_details(), "/checkout")
        self.assertEqual(self.draft.step, CheckoutStep.DETAILS)
