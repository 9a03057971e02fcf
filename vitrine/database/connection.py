import logging
from contextlib import contextmanager
from sqlmodel import SQLModel, Session, create_engine

from vitrine.configuration.settings import Configuration

configuration = Configuration()


def build_engine(database_url: str, **kwargs):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Necessário para o threadpool do FastAPI
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, **kwargs)


engine = build_engine(configuration.get_database_url())


def init_db(target_engine=None):
    # Registra as tabelas no metadata antes do create_all
    import vitrine.models  # noqa: F401

    SQLModel.metadata.create_all(target_engine or engine)
    logging.info("SISTEMA >>> Tabelas criadas/verificadas com sucesso")


def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope(target_engine=None):
    with Session(target_engine or engine) as session:
        yield session
