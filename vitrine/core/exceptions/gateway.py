class GatewayError(Exception):
    """Falha de comunicação com o gateway de pagamento."""

    def __init__(self, message: str = "Não foi possível conectar ao serviço de pagamento."):
        super().__init__(message)
        self.message = message


class GatewayDeclined(GatewayError):
    """O gateway respondeu, mas recusou a transação."""


class GatewayTransactionNotFound(GatewayError):
    def __init__(self, message: str = "Não foi possível encontrar o pedido."):
        super().__init__(message)
