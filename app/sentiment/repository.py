"""
Repository para persistência de snapshots do classificador.

Separa a lógica de persistência do orquestrador.
"""
import logging
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DatabaseError, RecordNotFoundError
from app.sentiment.models import ClassifierSnapshot
from app.sentiment.types import ClassifierState

logger = logging.getLogger(__name__)


class ClassifierSnapshotRepository:
    """Repository para operações de ClassifierSnapshot."""

    def __init__(self, db: Session):
        self.db = db

    def save(self, state: ClassifierState, engine_version: str) -> ClassifierSnapshot:
        """
        Persiste um novo snapshot do estado do classificador.

        Args:
            state: Estado exportado pelo classificador
            engine_version: Versão do motor

        Returns:
            Snapshot persistido com ID gerado
        """
        snapshot = ClassifierSnapshot.create_from_state(state, engine_version)
        try:
            self.db.add(snapshot)
            self.db.commit()
            self.db.refresh(snapshot)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Erro ao salvar snapshot: {e}")
            raise DatabaseError(f"Falha ao salvar snapshot: {e}") from e

        logger.info(f"Snapshot do classificador salvo: {snapshot.id}")
        return snapshot

    def get_by_id(self, id: str) -> Optional[ClassifierSnapshot]:
        try:
            return self.db.get(ClassifierSnapshot, id)
        except SQLAlchemyError as e:
            logger.error(f"Erro ao buscar snapshot {id}: {e}")
            raise DatabaseError(f"Falha ao buscar snapshot: {e}") from e

    def get_by_id_or_raise(self, id: str) -> ClassifierSnapshot:
        """
        Busca snapshot por ID ou levanta exceção.

        Raises:
            RecordNotFoundError: Se não encontrar
        """
        snapshot = self.get_by_id(id)
        if snapshot is None:
            raise RecordNotFoundError(resource="Snapshot", record_id=id)
        return snapshot

    def get_latest(self) -> Optional[ClassifierSnapshot]:
        """Snapshot mais recente, ou None se não houver."""
        try:
            return self.db.scalars(
                select(ClassifierSnapshot).order_by(desc(ClassifierSnapshot.created_at)).limit(1)
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Erro ao buscar último snapshot: {e}")
            raise DatabaseError(f"Falha ao buscar último snapshot: {e}") from e

    def list_recent(self, limit: int = 20) -> List[ClassifierSnapshot]:
        try:
            return list(self.db.scalars(
                select(ClassifierSnapshot).order_by(desc(ClassifierSnapshot.created_at)).limit(limit)
            ))
        except SQLAlchemyError as e:
            logger.error(f"Erro ao listar snapshots: {e}")
            raise DatabaseError(f"Falha ao listar snapshots: {e}") from e
