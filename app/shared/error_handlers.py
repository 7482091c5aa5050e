"""
Handlers de erro unificados para toda a aplicação.

Converte as exceções do domínio em respostas HTTP padronizadas.
"""
import logging
import math
from typing import Callable, Dict, Tuple, Type

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    AnalysisFailedError,
    AnalysisTimeoutError,
    CircuitOpenError,
    DatabaseError,
    EnsembleInputError,
    ExternalPredictorError,
    HybridMoodError,
    InvalidTextError,
    MLError,
    ModelLoadError,
    OrchestratorDisposedError,
    RecordNotFoundError,
    ResilienceError,
)

logger = logging.getLogger(__name__)


# Mapeamento de exceções para status codes e códigos de erro
ERROR_MAPPING: Dict[Type[Exception], Tuple[int, str, str]] = {
    # (status_code, error_code, default_message)
    InvalidTextError: (
        status.HTTP_400_BAD_REQUEST,
        "INVALID_TEXT",
        "Texto inválido para análise"
    ),
    RecordNotFoundError: (
        status.HTTP_404_NOT_FOUND,
        "RECORD_NOT_FOUND",
        "Registro não encontrado"
    ),
    EnsembleInputError: (
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "ENSEMBLE_INPUT_INVALID",
        "Entrada inválida para o ensemble"
    ),
    CircuitOpenError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "CIRCUIT_OPEN",
        "Serviço de análise temporariamente indisponível"
    ),
    AnalysisTimeoutError: (
        status.HTTP_504_GATEWAY_TIMEOUT,
        "ANALYSIS_TIMEOUT",
        "Análise excedeu o tempo limite"
    ),
    AnalysisFailedError: (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "ANALYSIS_FAILED",
        "Falha no motor de análise"
    ),
    OrchestratorDisposedError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "SERVICE_SHUTTING_DOWN",
        "Serviço em encerramento"
    ),
    ResilienceError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "RESILIENCE_ERROR",
        "Serviço de análise indisponível"
    ),
    ExternalPredictorError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "EXTERNAL_PREDICTOR_UNAVAILABLE",
        "Preditor externo indisponível"
    ),
    ModelLoadError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "MODEL_UNAVAILABLE",
        "Modelo de análise temporariamente indisponível"
    ),
    MLError: (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "ML_ERROR",
        "Erro no processamento de ML"
    ),
    DatabaseError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "DATABASE_ERROR",
        "Erro temporário no banco de dados"
    ),
}


def resolve_error(error: Exception) -> Tuple[int, str, str]:
    """Busca o mapeamento mais específico seguindo a hierarquia da exceção."""
    for error_type in type(error).__mro__:
        mapping = ERROR_MAPPING.get(error_type)
        if mapping:
            status_code, error_code, default_message = mapping
            message = getattr(error, "message", None) or str(error) or default_message
            return status_code, error_code, message

    # Erro genérico não mapeado
    logger.error(f"Erro não mapeado: {type(error).__name__}: {error}")
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Erro interno do servidor"


def get_error_headers(error: Exception) -> Dict[str, str]:
    """
    Retorna headers adicionais para tipos específicos de erro.

    Args:
        error: Exceção original

    Returns:
        Dict de headers
    """
    headers = {}

    if isinstance(error, CircuitOpenError):
        headers["Retry-After"] = str(max(1, math.ceil(error.retry_after)))

    return headers


def handle_api_error(error: Exception, request_id: str = "unknown") -> HTTPException:
    """
    Handler unificado para erros de API.

    Converte exceções da aplicação para HTTPException com formato padronizado.

    Args:
        error: Exceção original
        request_id: ID da requisição para rastreamento

    Returns:
        HTTPException com detalhes formatados
    """
    status_code, error_code, message = resolve_error(error)
    detail = {
        "error": error_code,
        "message": message,
        "request_id": request_id
    }
    if isinstance(error, HybridMoodError) and error.details:
        detail["details"] = error.details

    return HTTPException(
        status_code=status_code,
        detail=detail,
        headers=get_error_headers(error) or None
    )


def create_error_response(
    error: Exception,
    request_id: str = "unknown",
    include_debug: bool = False
) -> JSONResponse:
    """
    Cria JSONResponse para erros.

    Args:
        error: Exceção original
        request_id: ID da requisição
        include_debug: Se deve incluir informações de debug

    Returns:
        JSONResponse formatado
    """
    status_code, error_code, message = resolve_error(error)

    content = {
        "error": error_code,
        "message": message,
        "details": error.details if isinstance(error, HybridMoodError) else {},
        "request_id": request_id
    }

    if include_debug:
        content["debug"] = {
            "error_type": type(error).__name__,
            "error_details": str(error)
        }

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=get_error_headers(error)
    )


async def hybridmood_exception_handler(request: Request, exc: HybridMoodError) -> JSONResponse:
    """Handler global para exceções do domínio não tratadas nos routers."""
    request_id = getattr(request.state, "request_id", "unknown")
    return create_error_response(exc, request_id=request_id)


def get_exception_handlers() -> Dict[Type[Exception], Callable]:
    """Retorna exception handlers para registrar na aplicação."""
    return {
        HybridMoodError: hybridmood_exception_handler,
    }


logger.info("Módulo de error handlers unificados carregado")
