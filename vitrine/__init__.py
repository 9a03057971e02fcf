import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from vitrine.configuration.settings import Configuration
from vitrine.core.exceptions.app_exception import AppHttpException, app_http_exception_handler
from vitrine.helpers.session.session_id import SESSION_HEADER

from vitrine.routes.cart.cart import CartRouter
from vitrine.routes.order.order import OrderRouter
from vitrine.routes.payment.payment import PaymentRouter

configuration = Configuration()

logging.info(f"SISTEMA >>> Ambiente carregado: {configuration.environment}")

def create_app(init_database: bool = True, start_jobs: bool = True):
    """
    Cria e configura a aplicação FastAPI do storefront, incluindo middlewares,
    rotas de carrinho/pagamento/pedidos e o agendador de expiração de PIX.
    """
    app = FastAPI(title="Vitrine")

    if init_database:
        from vitrine.database.connection import init_db
        logging.info("SISTEMA >>> Inicializando o banco de dados...")
        init_db()

    if start_jobs:
        from vitrine.functions.scheduler.scheduler import start_scheduler
        app.state.scheduler = start_scheduler()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=configuration.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[SESSION_HEADER],
    )

    app.add_exception_handler(AppHttpException, app_http_exception_handler)

    app.include_router(CartRouter())
    app.include_router(PaymentRouter())
    app.include_router(OrderRouter())

    return app
