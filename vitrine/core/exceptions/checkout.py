"""
Erros do fluxo de checkout do storefront.

Toda ação iniciada pelo cliente (enviar dados, pagar, verificar status,
gerar novo PIX) converte estes erros em notificações; o polling em
segundo plano só reage aos resultados que mudam o estado.
"""
from typing import Optional


class CheckoutError(Exception):
    """Base de todos os erros do checkout."""

    default_title = "Erro"

    def __init__(self, message: str, title: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.title = title or self.default_title


class ValidationError(CheckoutError):
    """Rascunho de checkout incompleto ou inválido (bloqueia a navegação)."""

    default_title = "Dados Incompletos"


class PaymentInProgress(ValidationError):
    """Já existe uma requisição de pagamento em andamento para este rascunho."""

    default_title = "Pagamento em andamento"


class IntegrationUnavailable(CheckoutError):
    """Script de tokenização não carregado ou fingerprint ausente."""

    default_title = "Erro de Integração"


class PaymentDeclined(CheckoutError):
    """Gateway recusou o cartão ou o pagamento; a mensagem vem do gateway."""

    default_title = "Erro no Pagamento"


class GatewayResponseInvalid(CheckoutError):
    """Resposta de sucesso sem token ou sem os dados de pagamento."""

    default_title = "Erro no Pagamento"


class TransportError(CheckoutError):
    """Falha de rede ao falar com o backend."""

    default_title = "Erro de Conexão"


class NotFound(CheckoutError):
    default_title = "Pedido não encontrado"
