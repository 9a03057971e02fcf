"""
Rascunho do checkout: dados do cliente, endereço de entrega e a etapa atual.

O rascunho é serializado no armazenamento da sessão a cada alteração para
que um recarregamento da página em `/checkout?step=payment` volte direto
para o pagamento, desde que os dados guardados ainda sejam válidos.
"""
import json
import logging
import re
from enum import Enum
from typing import MutableMapping, Optional
from urllib.parse import parse_qs, urlparse

from pydantic import ValidationError as PydanticValidationError

from vitrine.core.exceptions.checkout import CheckoutError, ValidationError
from vitrine.helpers.order.formatters import only_digits
from vitrine.schemas.payment.payment import REQUIRED_SHIPPING_FIELDS, CustomerPayload, ShippingPayload
from vitrine.storefront.cep import ViaCepClient
from vitrine.storefront.session import (
    CHECKOUT_ADDRESS_KEY,
    CHECKOUT_CEP_KEY,
    CHECKOUT_FORM_KEY,
    CHECKOUT_STEP_KEY,
)
from vitrine.storefront.ui import Notifier

PAYMENT_STEP_URL = "/checkout?step=payment"
DETAILS_STEP_URL = "/checkout"


class CheckoutStep(str, Enum):
    DETAILS = "details"
    PAYMENT = "payment"


def mask_cep(value: str) -> str:
    digits = only_digits(value)[:8]
    return f"{digits[:5]}-{digits[5:]}" if len(digits) > 5 else digits


def mask_cpf(value: str) -> str:
    digits = only_digits(value)[:11]
    masked = re.sub(r"(\d{3})(\d)", r"\1.\2", digits, count=1)
    masked = re.sub(r"(\d{3})(\d)", r"\1.\2", masked, count=1)
    return re.sub(r"(\d{3})(\d{1,2})$", r"\1-\2", masked)


def mask_phone(value: str) -> str:
    digits = only_digits(value)[:11]
    if len(digits) > 10:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) > 6:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    if len(digits) > 2:
        return f"({digits[:2]}) {digits[2:]}"
    if digits:
        return f"({digits}"
    return ""


class CheckoutDraft:
    def __init__(
        self,
        storage: MutableMapping[str, str],
        cep_client: ViaCepClient,
        notifier: Optional[Notifier] = None,
    ):
        self.storage = storage
        self.cep_client = cep_client
        self.notifier = notifier
        self.customer = CustomerPayload()
        self.shipping = ShippingPayload()
        self.step = CheckoutStep.DETAILS
        self.cep_looked_up = False
        self.is_cep_loading = False

    # Persistência

    def persist(self):
        self.storage[CHECKOUT_FORM_KEY] = self.customer.model_dump_json()
        self.storage[CHECKOUT_ADDRESS_KEY] = self.shipping.model_dump_json()
        self.storage[CHECKOUT_STEP_KEY] = self.step.value
        self.storage[CHECKOUT_CEP_KEY] = json.dumps(self.cep_looked_up)

    def _restore(self) -> bool:
        form = self.storage.get(CHECKOUT_FORM_KEY)
        address = self.storage.get(CHECKOUT_ADDRESS_KEY)
        if not form or not address:
            return False
        try:
            self.customer = CustomerPayload.model_validate_json(form)
            self.shipping = ShippingPayload.model_validate_json(address)
            self.cep_looked_up = bool(json.loads(self.storage.get(CHECKOUT_CEP_KEY, "false")))
        except (PydanticValidationError, ValueError) as e:
            logging.warning(f"CHECKOUT >>> Rascunho salvo inválido, descartando: {e}")
            self.customer = CustomerPayload()
            self.shipping = ShippingPayload()
            self.cep_looked_up = False
            return False
        return True

    def resume(self, url: str = DETAILS_STEP_URL) -> CheckoutStep:
        """Restaura o rascunho salvo e decide a etapa inicial a partir da URL."""
        restored = self._restore()
        wants_payment = parse_qs(urlparse(url).query).get("step") == [CheckoutStep.PAYMENT.value]

        self.step = CheckoutStep.DETAILS
        if wants_payment and restored:
            try:
                self.validate()
                self.step = CheckoutStep.PAYMENT
            except ValidationError:
                logging.info("CHECKOUT >>> Rascunho incompleto, voltando para a etapa de dados")
        return self.step

    def prefill(self, customer: CustomerPayload, address: Optional[ShippingPayload] = None):
        """Preenche com os dados de um cliente conhecido; endereço salvo dispensa a busca de CEP."""
        self.customer = customer.model_copy()
        if address and address.cep:
            self.shipping = address.model_copy()
            self.cep_looked_up = True
        self.persist()

    # Edição dos campos

    def update_customer(self, **fields):
        if "cpf" in fields:
            fields["cpf"] = mask_cpf(fields["cpf"])
        if "phone" in fields:
            fields["phone"] = mask_phone(fields["phone"])
        self.customer = self.customer.model_copy(update=fields)
        self.persist()

    def update_shipping(self, **fields):
        if "cep" in fields:
            raise ValueError("Use set_cep para alterar o CEP")
        self.shipping = self.shipping.model_copy(update=fields)
        self.persist()

    async def set_cep(self, value: str) -> bool:
        """Aplica a máscara e, com 8 dígitos, busca o endereço. Retorna se o CEP foi confirmado."""
        masked = mask_cep(value)
        if masked != self.shipping.cep:
            self.cep_looked_up = False
        self.shipping = self.shipping.model_copy(update={"cep": masked})
        self.persist()

        # Uma busca em andamento refaz a consulta se o CEP mudar enquanto ela espera
        if len(only_digits(masked)) != 8 or self.is_cep_loading:
            return self.cep_looked_up

        self.is_cep_loading = True
        try:
            while True:
                failure = None
                address = None
                try:
                    address = await self.cep_client.lookup(masked)
                except CheckoutError as e:
                    failure = e

                current = self.shipping.cep
                if current == masked:
                    break
                logging.info(f"CHECKOUT >>> CEP alterado para {current} durante a busca de {masked}, resultado descartado")
                if len(only_digits(current)) != 8:
                    return self.cep_looked_up
                masked = current
        finally:
            self.is_cep_loading = False

        if failure is not None:
            logging.warning(f"CHECKOUT >>> CEP {masked} não confirmado: {failure.message}")
            self.cep_looked_up = False
            if self.notifier:
                self.notifier.toast("Erro ao buscar CEP", "Não foi possível encontrar o CEP digitado.", "destructive")
        else:
            self.shipping = self.shipping.model_copy(update=address)
            self.cep_looked_up = True

        self.persist()
        return self.cep_looked_up

    # Validação e navegação

    def validate(self):
        customer = self.customer
        missing_address = any(not getattr(self.shipping, field) for field in REQUIRED_SHIPPING_FIELDS)
        if (
            not customer.email
            or not customer.name
            or not customer.cpf
            or not customer.phone
            or not self.cep_looked_up
            or missing_address
        ):
            raise ValidationError("Por favor, preencha todos os campos obrigatórios.", title="Dados Incompletos")
        if len(only_digits(customer.cpf)) != 11:
            raise ValidationError("Por favor, insira um CPF válido.", title="CPF Inválido")
        if len(only_digits(customer.phone)) < 10:
            raise ValidationError("Por favor, insira um telefone válido com DDD.", title="Telefone Inválido")

    def submit_details(self, cart_count: int) -> str:
        """Valida os dados e avança para o pagamento. Retorna a URL da etapa de pagamento."""
        if cart_count < 1:
            raise ValidationError("Adicione itens ao carrinho antes de finalizar a compra.", title="Carrinho Vazio")
        self.validate()
        self.step = CheckoutStep.PAYMENT
        self.persist()
        logging.info("CHECKOUT >>> Dados confirmados, seguindo para o pagamento")
        return PAYMENT_STEP_URL

    def back_to_details(self) -> str:
        self.step = CheckoutStep.DETAILS
        self.persist()
        return DETAILS_STEP_URL
