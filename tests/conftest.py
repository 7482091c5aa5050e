import os
import tempfile

# Configurações de teste precisam existir antes de importar a aplicação
TEST_DATA_DIR = tempfile.mkdtemp(prefix="hybridmood_test_")
TEST_ENV = {
    "HYBRIDMOOD_DEBUG": "true",
    "HYBRIDMOOD_ENVIRONMENT": "development",
    "HYBRIDMOOD_DATABASE__URL": f"sqlite:///{os.path.join(TEST_DATA_DIR, 'test.db')}",
    "HYBRIDMOOD_DATABASE__ECHO": "false",
    "HYBRIDMOOD_EXTERNAL__ENABLED": "false",
    "HYBRIDMOOD_ML__RESTORE_LATEST_SNAPSHOT": "false",
    "HYBRIDMOOD_LOG_LEVEL": "WARNING",
}
os.environ.update(TEST_ENV)

from typing import Any, Dict, List  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine as create_sql_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.config import CacheConfig, Settings, get_settings  # noqa: E402
from app.core.cache import AnalysisCache  # noqa: E402
from app.core.database import Base  # noqa: E402
from app.sentiment import models  # noqa: E402,F401
from app.sentiment.engine import ScoringEngine, create_engine  # noqa: E402
from app.sentiment.orchestrator import CircuitBreaker, ResilienceOrchestrator  # noqa: E402
from app.sentiment.schemas import (  # noqa: E402
    AnalysisResult,
    EmotionScores,
    SentimentBreakdown,
    SignalBreakdown,
)
from app.sentiment.training_data import BOOTSTRAP_EXAMPLES  # noqa: E402


class ManualClock:
    """Relógio controlado manualmente para testes de TTL e cooldown."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# CONFIGURAÇÕES DE TESTE

@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return get_settings()


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


# FIXTURES DE BANCO DE DADOS

@pytest.fixture
def test_db():
    """Sessão isolada em SQLite in-memory para cada teste."""
    engine = create_sql_engine(
        "sqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


# FIXTURES DO MOTOR

@pytest.fixture(scope="session")
def trained_engine(test_settings) -> ScoringEngine:
    """Motor treinado com o conjunto embutido (sem preditor externo)."""
    return create_engine(test_settings, BOOTSTRAP_EXAMPLES)


def make_result(label: str = "positive", score: float = 0.5, confidence: float = 0.8) -> AnalysisResult:
    return AnalysisResult(
        sentiment=SentimentBreakdown(
            label=label,
            score=score,
            magnitude=abs(score),
            confidence=confidence,
            emotions=EmotionScores(joy=0.0, sadness=0.0, anger=0.0, fear=0.0, surprise=0.0, disgust=0.0),
        ),
        keywords=[],
        language="en",
        signals=SignalBreakdown(token_count=1, negation_flips=0, intensifier_boost=0.0, sarcasm_score=0),
        version="1.0.0-unified",
    )


@pytest.fixture
def mock_engine() -> MagicMock:
    """Motor falso com analyze assíncrono controlável."""
    engine = MagicMock(spec=ScoringEngine)
    engine.analyze = AsyncMock(return_value=make_result())
    engine.close = AsyncMock(return_value=None)
    engine.external = None
    engine.version = "1.0.0-unified"
    engine.get_classifier_stats.return_value = {
        "trained": True,
        "vocabulary_size": 0,
        "total_documents": 0,
        "class_counts": {},
        "total_words_per_class": {},
    }
    return engine


@pytest_asyncio.fixture
async def orchestrator(trained_engine, test_settings, manual_clock):
    """Orquestrador sobre o motor real, com relógio manual."""
    instance = ResilienceOrchestrator(trained_engine, settings=test_settings, clock=manual_clock)
    yield instance
    await instance.cache.stop_sweeper()


@pytest_asyncio.fixture
async def build_orchestrator(test_settings, manual_clock):
    """Factory para orquestradores com motor, cache e breaker customizados."""
    created: List[ResilienceOrchestrator] = []

    def factory(
        engine: Any,
        max_entries: int = 100,
        ttl_seconds: float = 60.0,
        failure_threshold: int = 5,
        cooldown_seconds: float = 60.0,
        timeout: float = 5.0,
    ) -> ResilienceOrchestrator:
        instance = ResilienceOrchestrator(
            engine,
            settings=test_settings,
            cache=AnalysisCache(
                CacheConfig(ttl_seconds=ttl_seconds, max_entries=max_entries, eviction_fraction=0.2),
                clock=manual_clock,
            ),
            breaker=CircuitBreaker(
                failure_threshold=failure_threshold,
                cooldown_seconds=cooldown_seconds,
                clock=manual_clock,
            ),
            clock=manual_clock,
        )
        instance.timeout = timeout
        created.append(instance)
        return instance

    yield factory

    for instance in created:
        await instance.cache.stop_sweeper()


# CLIENTE DE TESTE

@pytest.fixture
def test_client():
    """Cliente FastAPI com lifespan completo (banco SQLite temporário)."""
    from app.main import app

    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


# DADOS DE TESTE

@pytest.fixture
def analysis_texts() -> Dict[str, str]:
    return {
        "positive_en": "I love this product! It's amazing!",
        "negative_en": "This is the worst purchase I've ever made.",
        "neutral_en": "The package arrived today.",
        "sarcastic_en": "Oh great, another bug in the app. Just perfect!",
        "empty": "",
        "whitespace": "   ",
    }
