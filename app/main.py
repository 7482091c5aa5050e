import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.core.database import check_database_health, get_db_transaction, init_database
from app.sentiment.engine import ScoringEngine, create_engine
from app.sentiment.orchestrator import ResilienceOrchestrator
from app.sentiment.repository import ClassifierSnapshotRepository
from app.sentiment.router import router as sentiment_router
from app.sentiment.training_data import BOOTSTRAP_EXAMPLES
from app.shared.error_handlers import get_exception_handlers
from app.shared.middleware import setup_middleware

# Configurações
settings = get_settings()
logger = logging.getLogger(__name__)


def prepare_classifier(engine: ScoringEngine, config: Settings) -> str:
    """
    Deixa o classificador estatístico pronto para uso.

    Restaura o snapshot mais recente quando configurado e válido; caso
    contrário treina com o conjunto embutido.

    Returns:
        Origem do estado: "snapshot", "bootstrap" ou "untrained"
    """
    if config.ml.restore_latest_snapshot:
        with get_db_transaction() as session:
            snapshot = ClassifierSnapshotRepository(session).get_latest()
            if snapshot is not None and snapshot.verify():
                engine.load_state(snapshot.state)
                logger.info(f"Classificador restaurado do snapshot {snapshot.id}")
                return "snapshot"
            if snapshot is not None:
                logger.warning(f"Snapshot {snapshot.id} com checksum inválido - ignorado")

    if config.ml.bootstrap_on_startup:
        used = engine.train(BOOTSTRAP_EXAMPLES)
        logger.info(f"Classificador treinado com {used} exemplos embutidos")
        return "bootstrap"

    logger.warning("Classificador iniciado sem treino - predições estatísticas serão neutras")
    return "untrained"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerencia ciclo de vida da aplicação."""

    # STARTUP
    logger.info(f"Iniciando {settings.app_name} v{settings.app_version} - {settings.environment}")

    # 1. Inicializar banco de dados
    init_database()

    # 2. Motor de análise e estado do classificador
    engine = create_engine(settings)
    app.state.classifier_source = prepare_classifier(engine, settings)

    if engine.external is not None:
        logger.info(f"Preditor externo habilitado: {settings.external.backend} ({settings.external.model_name})")

    # 3. Orquestrador (inicia a varredura periódica do cache)
    orchestrator = ResilienceOrchestrator(engine, settings=settings)
    app.state.orchestrator = orchestrator
    app.state.started_at = time.time()

    logger.info(f"✅ {settings.app_name} iniciado com sucesso!")

    try:
        yield
    finally:
        # SHUTDOWN
        logger.info(f"Encerrando {settings.app_name}...")
        await orchestrator.dispose()
        app.state.orchestrator = None
        logger.info(f"{settings.app_name} encerrado")


# Criar aplicação FastAPI
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=settings.app_description,
    lifespan=lifespan,
    debug=settings.debug,
    openapi_tags=[
        {
            "name": "sentiment-analysis",
            "description": "Análise híbrida de sentimentos, métricas e snapshots do modelo"
        },
        {
            "name": "health",
            "description": "Verificações de saúde e status"
        }
    ]
)

# Configurar middleware
setup_middleware(app)

# Registrar exception handlers
for exception_type, handler in get_exception_handlers().items():
    app.add_exception_handler(exception_type, handler)

# Incluir routers
app.include_router(sentiment_router)


@app.get(
    "/",
    summary="Página inicial",
    description="Informações básicas da API",
    tags=["health"]
)
async def root():
    """Endpoint raiz com informações da API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "engine_version": settings.engine_tag,
        "description": settings.app_description,
        "environment": settings.environment,
        "status": "running",
        "features": [
            "lexicon-scoring",
            "naive-bayes-classifier",
            "contextual-ensemble",
            "sarcasm-detection",
            "circuit-breaker",
            "ttl-cache",
            "batch-processing",
            "model-snapshots"
        ]
    }


@app.get(
    "/health",
    summary="Health check geral",
    description="Verificação de saúde de todos os componentes",
    tags=["health"]
)
async def health_check(request: Request):
    """Health check completo da aplicação."""
    db_health = check_database_health()

    orchestrator = getattr(request.app.state, "orchestrator", None)
    orchestrator_status = orchestrator.health()["status"] if orchestrator is not None else "unhealthy"

    statuses = [db_health.get("status"), orchestrator_status]
    if all(s == "healthy" for s in statuses):
        overall_status = "healthy"
    elif orchestrator_status != "unhealthy":
        overall_status = "degraded"
    else:
        overall_status = "unhealthy"

    started_at = getattr(request.app.state, "started_at", None)
    response = {
        "status": overall_status,
        "components": {
            "database": db_health.get("status", "unknown"),
            "orchestrator": orchestrator_status,
            "classifier_source": getattr(request.app.state, "classifier_source", "unknown")
        },
        "uptime_seconds": round(time.time() - started_at, 3) if started_at else None,
        "version": settings.app_version,
        "environment": settings.environment
    }

    # Status code baseado na saúde
    status_code = {
        "healthy": status.HTTP_200_OK,
        "degraded": status.HTTP_200_OK,  # 200 mas com warnings
        "unhealthy": status.HTTP_503_SERVICE_UNAVAILABLE
    }.get(overall_status, status.HTTP_503_SERVICE_UNAVAILABLE)

    return JSONResponse(status_code=status_code, content=response)


# Handler customizado para 404
@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    """Handler personalizado para 404."""
    detail = getattr(exc, "detail", None)
    if isinstance(detail, dict):
        return JSONResponse(status_code=404, content={"detail": detail})

    return JSONResponse(
        status_code=404,
        content={
            "error": "NOT_FOUND",
            "message": f"Endpoint {request.method} {request.url.path} não encontrado",
            "available_endpoints": {
                "analyze": "/api/v1/sentiment/analyze",
                "batch_analysis": "/api/v1/sentiment/analyze-batch",
                "metrics": "/api/v1/sentiment/metrics",
                "snapshots": "/api/v1/sentiment/model/snapshots",
                "health": "/health"
            }
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload and settings.debug,
        workers=settings.server.workers,
        log_level=settings.log_level.lower(),
        access_log=settings.debug
    )
