import logging
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.core.database import get_session_factory
from app.core.exceptions import DatabaseError, OrchestratorDisposedError
from app.sentiment.orchestrator import ResilienceOrchestrator
from app.sentiment.repository import ClassifierSnapshotRepository

logger = logging.getLogger(__name__)


def get_config() -> Settings:
    """Dependency para obter configurações da aplicação."""
    return get_settings()


def get_db_session(config: Settings = Depends(get_config)) -> Generator[Session, None, None]:
    """Dependency factory para sessões de banco de dados."""
    session = get_session_factory()()
    logger.debug("Sessão de banco de dados criada")

    try:
        yield session
        session.commit()

    except SQLAlchemyError as e:
        logger.error(f"Erro SQLAlchemy: {e}")
        session.rollback()
        raise DatabaseError(
            message=f"Erro de banco de dados: {str(e)}",
            details={"error_type": type(e).__name__}
        ) from e

    except Exception:
        session.rollback()
        raise

    finally:
        session.close()
        logger.debug("Sessão fechada")


def get_snapshot_repository(db: Session = Depends(get_db_session)) -> ClassifierSnapshotRepository:
    """Dependency para o repository de snapshots."""
    return ClassifierSnapshotRepository(db)


def get_orchestrator(request: Request) -> ResilienceOrchestrator:
    """Dependency para o orquestrador criado no lifespan da aplicação."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise OrchestratorDisposedError("Orquestrador não inicializado")
    return orchestrator
