import logging
import time
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from app.core.database import check_database_health
from app.core.exceptions import HybridMoodError, ModelLoadError
from app.dependencies import get_orchestrator, get_snapshot_repository
from app.sentiment.orchestrator import ResilienceOrchestrator
from app.sentiment.repository import ClassifierSnapshotRepository
from app.sentiment.schemas import (
    AnalysisRequest,
    AnalysisResponse,
    BatchItemError,
    BatchItemResult,
    BatchRequest,
    BatchResponse,
    CircuitBreakerResponse,
    ClassifierStatsResponse,
    ErrorResponse,
    HealthResponse,
    MetricsResponse,
    SnapshotResponse,
    TrainRequest,
    TrainResponse,
)
from app.shared.error_handlers import handle_api_error, resolve_error

logger = logging.getLogger(__name__)


# Router com configuração base
router = APIRouter(
    prefix="/api/v1/sentiment",
    tags=["sentiment-analysis"],
    responses={
        500: {"model": ErrorResponse, "description": "Erro interno do servidor"},
        503: {"model": ErrorResponse, "description": "Serviço indisponível"},
        504: {"model": ErrorResponse, "description": "Tempo limite excedido"}
    }
)


async def log_analysis_stats(
    endpoint: str,
    success: bool,
    processing_time: float,
    text_count: int = 1
) -> None:
    """Background task para logging de estatísticas."""
    stats = {
        "endpoint": endpoint,
        "success": success,
        "processing_time_ms": round(processing_time, 2),
        "text_count": text_count,
    }
    logger.info(f"Analytics: {stats}")


def _request_id(http_request: Request) -> str:
    return getattr(http_request.state, "request_id", "unknown")


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    status_code=status.HTTP_200_OK,
    summary="Analisar sentimento de texto",
    description="Executa análise híbrida (léxico + estatístico + externo opcional) em um texto",
    response_description="Sentimento, emoções, sinais e pesos do ensemble"
)
async def analyze_sentiment(
    analysis_request: AnalysisRequest,
    background_tasks: BackgroundTasks,
    http_request: Request,
    orchestrator: ResilienceOrchestrator = Depends(get_orchestrator)
) -> AnalysisResponse:
    """
    Analisa sentimento de um texto individual.

    - **text**: Texto para análise (até o limite configurado; vazio resulta em neutro)
    - **language**: Idioma opcional (en, es, fr, de)
    """
    start_time = time.perf_counter()

    try:
        result, cached = await orchestrator.analyze_with_cache_info(analysis_request)
    except HybridMoodError as error:
        background_tasks.add_task(
            log_analysis_stats,
            endpoint="analyze",
            success=False,
            processing_time=(time.perf_counter() - start_time) * 1000
        )
        raise handle_api_error(error, _request_id(http_request)) from error

    processing_time = (time.perf_counter() - start_time) * 1000
    background_tasks.add_task(
        log_analysis_stats,
        endpoint="analyze",
        success=True,
        processing_time=processing_time
    )

    return AnalysisResponse(
        **result.model_dump(),
        cached=cached,
        processing_time_ms=processing_time
    )


@router.post(
    "/analyze-batch",
    response_model=BatchResponse,
    status_code=status.HTTP_200_OK,
    summary="Analisar sentimentos em lote",
    description="Analisa múltiplos textos concorrentemente; falhas são reportadas por item",
    response_description="Resultados na ordem de entrada"
)
async def analyze_batch_sentiment(
    batch_request: BatchRequest,
    background_tasks: BackgroundTasks,
    http_request: Request,
    orchestrator: ResilienceOrchestrator = Depends(get_orchestrator)
) -> BatchResponse:
    """
    Analisa sentimento de múltiplos textos em lote.

    - **items**: Lista de requisições (máximo 100 itens)
    """
    start_time = time.perf_counter()

    try:
        outcomes = await orchestrator.analyze_batch(batch_request.items)
    except HybridMoodError as error:
        raise handle_api_error(error, _request_id(http_request)) from error

    results: List[BatchItemResult] = []
    for index, outcome in enumerate(outcomes):
        if isinstance(outcome, HybridMoodError):
            _, error_code, message = resolve_error(outcome)
            results.append(BatchItemResult(
                index=index,
                error=BatchItemError(
                    error=error_code,
                    message=message,
                    details=outcome.details
                )
            ))
        else:
            results.append(BatchItemResult(index=index, result=outcome))

    failed = sum(1 for item in results if item.error is not None)
    processing_time = (time.perf_counter() - start_time) * 1000

    background_tasks.add_task(
        log_analysis_stats,
        endpoint="analyze-batch",
        success=failed == 0,
        processing_time=processing_time,
        text_count=len(batch_request.items)
    )

    return BatchResponse(
        results=results,
        total_processed=len(results),
        failed=failed,
        processing_time_ms=processing_time
    )


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Métricas do orquestrador",
    description="Contadores de requisições, cache, erros e circuit breaker"
)
async def get_metrics(
    orchestrator: ResilienceOrchestrator = Depends(get_orchestrator)
) -> MetricsResponse:
    return MetricsResponse(
        **orchestrator.get_metrics(),
        circuit_breaker=CircuitBreakerResponse(**orchestrator.get_breaker_state())
    )


@router.post(
    "/metrics/reset",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Resetar métricas",
    description="Zera contadores sem afetar cache nem circuit breaker"
)
async def reset_metrics(
    orchestrator: ResilienceOrchestrator = Depends(get_orchestrator)
) -> None:
    orchestrator.reset_metrics()


@router.post(
    "/model/train",
    response_model=TrainResponse,
    summary="Treinar classificador estatístico",
    description="Substitui todo o estado do classificador pelos exemplos enviados"
)
async def train_model(
    train_request: TrainRequest,
    http_request: Request,
    orchestrator: ResilienceOrchestrator = Depends(get_orchestrator)
) -> TrainResponse:
    try:
        used = orchestrator.train(train_request.as_pairs())
    except HybridMoodError as error:
        raise handle_api_error(error, _request_id(http_request)) from error

    return TrainResponse(
        examples_used=used,
        stats=ClassifierStatsResponse(**orchestrator.engine.get_classifier_stats())
    )


@router.post(
    "/model/snapshots",
    response_model=SnapshotResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Salvar snapshot do classificador",
    description="Persiste o estado atual do classificador estatístico"
)
async def create_snapshot(
    http_request: Request,
    orchestrator: ResilienceOrchestrator = Depends(get_orchestrator),
    repository: ClassifierSnapshotRepository = Depends(get_snapshot_repository)
) -> SnapshotResponse:
    try:
        snapshot = repository.save(orchestrator.export_model_state(), orchestrator.engine.version)
    except HybridMoodError as error:
        raise handle_api_error(error, _request_id(http_request)) from error

    return SnapshotResponse.model_validate(snapshot)


@router.get(
    "/model/snapshots",
    response_model=List[SnapshotResponse],
    summary="Listar snapshots",
    description="Snapshots mais recentes primeiro"
)
async def list_snapshots(
    http_request: Request,
    limit: int = Query(default=20, ge=1, le=100),
    repository: ClassifierSnapshotRepository = Depends(get_snapshot_repository)
) -> List[SnapshotResponse]:
    try:
        snapshots = repository.list_recent(limit)
    except HybridMoodError as error:
        raise handle_api_error(error, _request_id(http_request)) from error

    return [SnapshotResponse.model_validate(snapshot) for snapshot in snapshots]


@router.post(
    "/model/snapshots/{snapshot_id}/restore",
    response_model=ClassifierStatsResponse,
    summary="Restaurar snapshot",
    description="Carrega o estado salvo no classificador e invalida o cache"
)
async def restore_snapshot(
    snapshot_id: str,
    http_request: Request,
    orchestrator: ResilienceOrchestrator = Depends(get_orchestrator),
    repository: ClassifierSnapshotRepository = Depends(get_snapshot_repository)
) -> ClassifierStatsResponse:
    try:
        snapshot = repository.get_by_id_or_raise(snapshot_id)
        if not snapshot.verify():
            raise ModelLoadError(
                model_name="naive_bayes",
                message="Checksum do snapshot não confere",
                details={"snapshot_id": snapshot_id}
            )
        orchestrator.load_model_state(snapshot.state)
    except HybridMoodError as error:
        raise handle_api_error(error, _request_id(http_request)) from error

    logger.info(f"Snapshot restaurado: {snapshot_id}")
    return ClassifierStatsResponse(**orchestrator.engine.get_classifier_stats())


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Verificar saúde do serviço",
    description="Status do orquestrador, classificador e banco de dados",
    response_description="Status detalhado dos componentes"
)
async def health_check(
    orchestrator: ResilienceOrchestrator = Depends(get_orchestrator)
) -> HealthResponse:
    """
    Verifica saúde do serviço de análise de sentimentos.

    Circuito aberto resulta em status degraded.
    """
    report = orchestrator.health()
    db_health = check_database_health()

    overall_status = report["status"]
    if db_health.get("status") != "healthy" and overall_status == "healthy":
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        services={
            "orchestrator": report["status"],
            "database": db_health.get("status", "unknown"),
            "external_predictor": "enabled" if report["external_predictor"] else "disabled"
        },
        version=report["version"],
        circuit_breaker=report["circuit_breaker"],
        cache=report["cache"],
        classifier=report["classifier"]
    )
