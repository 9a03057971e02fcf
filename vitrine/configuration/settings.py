import logging
import os
from dotenv import load_dotenv

# Configuração de logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

# Carrega as variáveis de ambiente
load_dotenv(dotenv_path=".env", encoding="utf-8")

# Silencia logs de SQLAlchemy
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

DEFAULT_PAID_STATUSES = "aprovado,aprovada,pago,paga,confirmada,liquidado,approved,paid,confirmed,settled"
DEFAULT_CANCELED_STATUSES = "cancelado,cancelada,canceled,cancelled"
DEFAULT_CARD_KEYWORDS = "cartão,cartao,card,crédito,credito,visa,master,elo,amex,hipercard,diners"


def _csv(value: str) -> list:
    return [part.strip().lower() for part in value.split(",") if part.strip()]


class Configuration:
    def __init__(self):

        # Url base
        self.base_url = os.getenv("BASE_URL", "http://localhost:5000")

        # Configurações do ambiente e banco de dados
        self.environment = os.getenv("ENVIRONMENT", "development").lower()
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./vitrine.db")
        self.cors_origins = _csv(os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"))

        # POSTGRES PRODUCTION
        self.db_user = os.getenv("DB_USER")
        self.db_password = os.getenv("DB_PASSWORD")
        self.db_host = os.getenv("DB_HOST")
        self.db_port = os.getenv("DB_PORT", "5432")
        self.db_name = os.getenv("DB_NAME")

        # Gateway de pagamento: "vindi" ou "mercadopago"
        self.payment_gateway = os.getenv("PAYMENT_GATEWAY", "vindi").lower()

        self.vindi_api_url = os.getenv("VINDI_API_URL", "https://api.intermediador.sandbox.yapay.com.br/api/v3/transactions/payment")
        self.vindi_api_token = os.getenv("VINDI_API_TOKEN")

        self.mercado_pago_access_token_test = os.getenv("MERCADO_PAGO_ACCESS_TOKEN_TEST")
        self.mercado_pago_access_token_prod = os.getenv("MERCADO_PAGO_ACCESS_TOKEN_PROD")

        # Storefront (lado do cliente)
        self.storefront_api_url = os.getenv("STOREFRONT_API_URL", self.base_url)
        self.card_tokenization_url = os.getenv("CARD_TOKENIZATION_URL")
        self.viacep_url = os.getenv("VIACEP_URL", "https://viacep.com.br/ws")
        self.http_timeout_seconds = float(os.getenv("HTTP_TIMEOUT_SECONDS", 15))

        # Webhook do gateway: só enviado quando configurado, o status é consultado por polling
        self.payment_notification_url = os.getenv("PAYMENT_NOTIFICATION_URL")

        # PIX
        self.pix_poll_interval_seconds = float(os.getenv("PIX_POLL_INTERVAL_SECONDS", 3))
        self.pix_countdown_interval_seconds = float(os.getenv("PIX_COUNTDOWN_INTERVAL_SECONDS", 1))
        self.pix_expiration_minutes = int(os.getenv("PIX_EXPIRATION_MINUTES", 10))
        self.pix_min_amount = float(os.getenv("PIX_MIN_AMOUNT", 1.0))

        # Vocabulário de status do gateway (texto livre, comparado sem diferenciar maiúsculas)
        self.pix_paid_statuses = _csv(os.getenv("PIX_PAID_STATUSES", DEFAULT_PAID_STATUSES))
        self.pix_canceled_statuses = _csv(os.getenv("PIX_CANCELED_STATUSES", DEFAULT_CANCELED_STATUSES))
        self.card_method_keywords = _csv(os.getenv("CARD_METHOD_KEYWORDS", DEFAULT_CARD_KEYWORDS))

    @property
    def mercado_pago_access_token(self):
        if self.environment == "production":
            return self.mercado_pago_access_token_prod
        return self.mercado_pago_access_token_test

    def connect_to_postgresql(self):
        # Montar a URL de conexão corretamente
        db_url = f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"
        logging.info(f"BANCO DE DADOS >>> SELECIONADO DE PRODUÇÃO -> {self.db_host}:{self.db_port}/{self.db_name}")
        return db_url

    def get_database_url(self):
        if self.environment == "production" and self.db_host:
            return self.connect_to_postgresql()
        logging.info(f"BANCO DE DADOS >>> SELECIONADO DE DESENVOLVIMENTO -> {self.database_url}")
        return self.database_url
