import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.gzip import GZipMiddleware

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Rotas ignoradas pelo timing para reduzir ruído
QUIET_PATHS = {"/health", "/api/v1/sentiment/health", "/docs", "/openapi.json"}


class TimingMiddleware(BaseHTTPMiddleware):
    """Middleware para adicionar timing headers e detectar requests lentos."""

    def __init__(self, app, slow_request_seconds: float = 1.0):
        super().__init__(app)
        self.slow_request_seconds = slow_request_seconds

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Process-Time-MS"] = str(round(process_time * 1000, 2))

        if process_time > self.slow_request_seconds:
            logger.warning(
                f"Request lento: {request.method} {request.url.path} ({process_time * 1000:.2f}ms)",
                extra={"status_code": response.status_code}
            )

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware para logging estruturado de requests."""

    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # ID curto usado nas respostas de erro e nos logs
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        if self.log_requests:
            logger.info(f"Request iniciado: {request.method} {request.url.path} [{request_id}]")

        start_time = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            f"Request concluído: {response.status_code} {request.method} {request.url.path} "
            f"[{request_id}] {process_time_ms}ms"
        )

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware para tratamento global de erros não tratados."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.error(
                f"Exceção não tratada em {request.method} {request.url.path}: {e}",
                exc_info=True
            )

            error_response = {
                "error": "INTERNAL_SERVER_ERROR",
                "message": "Erro interno do servidor",
                "request_id": request_id
            }

            if settings.debug:
                error_response["debug_info"] = {
                    "error_type": type(e).__name__,
                    "error_message": str(e)
                }

            return JSONResponse(
                status_code=500,
                content=error_response,
                headers={"X-Request-ID": request_id}
            )


def setup_middleware(app: FastAPI) -> None:
    """
    Configura todos os middlewares na ordem correta.

    Ordem (externo para interno):
    1. CORS
    2. Error Handling
    3. Request Logging
    4. Compression
    5. Timing
    """
    app.add_middleware(TimingMiddleware)

    # Comprime responses > 500 bytes
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware, log_requests=settings.debug)

    app.add_middleware(ErrorHandlingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.effective_cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=[
            "X-Process-Time",
            "X-Process-Time-MS",
            "X-Request-ID",
            "Retry-After",
            "Content-Encoding"
        ]
    )

    logger.info(f"Middleware configurado - Ambiente: {settings.environment}")
