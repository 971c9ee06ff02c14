
"""Factory de sessão do SQLAlchemy 2."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

def create_session_factory(database_url: str, **engine_kwargs):
    """Cria SessionFactory síncrona para SQLAlchemy 2.

    :param database_url: URL completa do banco (psycopg3).
    :param engine_kwargs: repassados ao create_engine (ex.: poolclass em testes).
    :return: sessionmaker configurado.
    """
    engine_kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(database_url, future=True, **engine_kwargs)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
