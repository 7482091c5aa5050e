import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Dict, Generator

from sqlalchemy import Engine, MetaData, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)
settings = get_settings()


class Base(DeclarativeBase):
    """Base declarativa para modelos SQLAlchemy 2.0 com suporte a typing."""

    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "pk": "pk_%(table_name)s"
        }
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', 'unknown')})>"


def create_database_engine() -> Engine:
    """Cria e configura engine do banco."""
    database_url = settings.get_database_url()
    engine_kwargs: Dict[str, Any] = {
        "echo": settings.database.echo,
        "pool_pre_ping": True,
    }

    if database_url.startswith("sqlite"):
        logger.info("Configurando engine SQLite")
        engine_kwargs.update({
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False, "timeout": 20},
        })
    else:
        engine_kwargs.update({
            "pool_size": settings.database.pool_size,
            "max_overflow": settings.database.max_overflow,
            "pool_timeout": settings.database.pool_timeout,
            "pool_recycle": settings.database.pool_recycle,
        })

    try:
        engine = create_engine(database_url, **engine_kwargs)
    except Exception as e:
        logger.error(f"Erro ao criar engine: {e}")
        raise DatabaseError(
            message=f"Falha ao criar engine: {str(e)}",
            details={"database_url": database_url, "error": str(e)}
        ) from e

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def receive_connect(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA temp_store=MEMORY")
            cursor.close()

    logger.info(f"Engine de banco criado: {engine.url.render_as_string(hide_password=True)}")
    return engine


@lru_cache()
def get_engine() -> Engine:
    """Factory singleton para engine de banco."""
    return create_database_engine()


@lru_cache()
def get_session_factory() -> sessionmaker[Session]:
    """Factory para criar sessionmaker configurado."""
    return sessionmaker(
        bind=get_engine(),
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
    )


@contextmanager
def get_db_transaction() -> Generator[Session, None, None]:
    """Context manager para transações com commit/rollback automático."""
    session = get_session_factory()()

    try:
        yield session
        session.commit()

    except SQLAlchemyError as e:
        logger.error(f"Erro SQLAlchemy: {e}")
        session.rollback()
        raise DatabaseError(
            message=f"Erro de banco: {str(e)}",
            details={"error_type": type(e).__name__}
        ) from e

    except Exception:
        session.rollback()
        raise

    finally:
        session.close()


def test_database_connection() -> bool:
    """Testa conectividade com banco executando query simples."""
    try:
        with get_engine().connect() as connection:
            return connection.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError as e:
        logger.error(f"Erro de conectividade: {e}")
        raise DatabaseError(
            message=f"Falha na conexão: {str(e)}",
            details={"error_type": type(e).__name__}
        ) from e


def init_database() -> None:
    """Inicializa banco criando todas as tabelas."""
    # Registra os modelos na metadata antes do create_all
    from app.sentiment import models  # noqa: F401

    try:
        logger.info("Inicializando banco de dados...")
        Base.metadata.create_all(bind=get_engine())
    except SQLAlchemyError as e:
        logger.error(f"Erro ao inicializar banco: {e}")
        raise DatabaseError(
            message=f"Falha na inicialização: {str(e)}",
            details={"error": str(e)}
        ) from e

    test_database_connection()
    logger.info("Banco inicializado com sucesso")


def check_database_health() -> Dict[str, Any]:
    """Executa verificação de saúde do banco."""
    try:
        connection_ok = test_database_connection()
    except DatabaseError as e:
        return {"status": "unhealthy", "error": e.message}

    engine = get_engine()
    return {
        "status": "healthy" if connection_ok else "unhealthy",
        "dialect": engine.dialect.name,
        "tables": list(Base.metadata.tables.keys()),
    }


logger.info("Módulo de banco carregado")
