import hashlib
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.database import Base
from app.sentiment.types import ClassifierState

logger = logging.getLogger(__name__)


def state_checksum(state: ClassifierState) -> str:
    """MD5 da serialização canônica do estado."""
    canonical = json.dumps(state, sort_keys=True, ensure_ascii=False)
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


class ClassifierSnapshot(Base):
    """Snapshot persistido do estado do classificador Naive Bayes."""

    __tablename__ = "classifier_snapshots"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Identificador único do snapshot"
    )

    engine_version: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        comment="Versão do motor que gerou o snapshot"
    )

    vocabulary_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Tamanho do vocabulário no momento do snapshot"
    )

    total_documents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Número de exemplos de treino"
    )

    checksum: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="MD5 do estado serializado"
    )

    state: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Estado completo do classificador"
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        comment="Timestamp de criação do snapshot"
    )

    __table_args__ = (
        Index("idx_snapshot_created", "created_at"),
        {
            "comment": "Snapshots do classificador estatístico",
        }
    )

    def __repr__(self) -> str:
        return (
            f"<ClassifierSnapshot("
            f"id='{self.id[:8]}...', "
            f"documents={self.total_documents}, "
            f"vocabulary={self.vocabulary_size}"
            f")>"
        )

    @classmethod
    def create_from_state(cls, state: ClassifierState, engine_version: str) -> "ClassifierSnapshot":
        return cls(
            engine_version=engine_version,
            vocabulary_size=len(state["vocabulary"]),
            total_documents=state["total_documents"],
            checksum=state_checksum(state),
            state=dict(state),
        )

    def verify(self) -> bool:
        """Confere se o estado armazenado corresponde ao checksum."""
        return state_checksum(self.state) == self.checksum
