"""
Orquestrador resiliente em torno do motor de análise.

Responsabilidades independentes:
- Cache com TTL, limite de capacidade e varredura periódica
- Circuit breaker (CLOSED/OPEN, sem half-open)
- Timeout por chamada não cacheada
- Métricas e análise em lote

Todo o estado mutável pertence a uma única instância; nada é global.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

from pydantic import ValidationError

from app.config import Settings, get_settings
from app.core.cache import AnalysisCache, fingerprint
from app.core.exceptions import (
    AnalysisFailedError,
    AnalysisTimeoutError,
    CircuitOpenError,
    HybridMoodError,
    InvalidTextError,
    OrchestratorDisposedError,
    validate_analysis_text,
)
from app.core.protocols import ClockProtocol
from app.sentiment.classifier import TrainingExample
from app.sentiment.engine import ScoringEngine
from app.sentiment.schemas import AnalysisRequest, AnalysisResult
from app.sentiment.types import (
    CircuitBreakerSnapshot,
    ClassifierState,
    MetricsSnapshot,
    OrchestratorMetrics,
)

logger = logging.getLogger(__name__)

RequestLike = Union[AnalysisRequest, Mapping[str, Any]]


class CircuitBreaker:
    """Circuit breaker com dois estados observáveis.

    Ao fim do cooldown a próxima requisição fecha o circuito
    incondicionalmente, independente do resultado dela. Sucessos em CLOSED
    não zeram o contador de falhas.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        cooldown_seconds: float = 60.0,
        clock: ClockProtocol = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self.is_open = False
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.next_attempt_time: Optional[float] = None
        self.trips = 0

    def check(self) -> None:
        """Levanta CircuitOpenError enquanto o circuito estiver aberto."""
        if not self.is_open:
            return

        now = self._clock()
        if now > self.next_attempt_time:
            self.is_open = False
            self.failure_count = 0
            logger.info("Circuit breaker fechado após cooldown - requisições liberadas")
            return

        raise CircuitOpenError(retry_after=self.next_attempt_time - now)

    def record_failure(self) -> bool:
        """Registra falha do motor. Retorna True se o circuito abriu agora."""
        now = self._clock()
        self.failure_count += 1
        self.last_failure_time = now

        if self.is_open or self.failure_count < self.failure_threshold:
            return False

        self.is_open = True
        self.next_attempt_time = now + self.cooldown_seconds
        self.trips += 1
        logger.error(
            f"Circuit breaker aberto após {self.failure_count} falhas "
            f"(cooldown: {self.cooldown_seconds}s)"
        )
        return True

    def reset(self) -> None:
        self.is_open = False
        self.failure_count = 0
        self.last_failure_time = None
        self.next_attempt_time = None
        logger.info("Circuit breaker resetado manualmente")

    def snapshot(self) -> CircuitBreakerSnapshot:
        return CircuitBreakerSnapshot(
            is_open=self.is_open,
            failure_count=self.failure_count,
            last_failure_time=self.last_failure_time,
            next_attempt_time=self.next_attempt_time,
        )


def _empty_metrics() -> OrchestratorMetrics:
    return OrchestratorMetrics(
        total_requests=0,
        cache_hits=0,
        cache_misses=0,
        error_count=0,
        average_processing_time_ms=0.0,
        total_processing_time_ms=0.0,
        circuit_breaker_trips=0,
    )


class ResilienceOrchestrator:
    """Envolve o ScoringEngine com cache, circuit breaker, timeout e métricas."""

    def __init__(
        self,
        engine: ScoringEngine,
        settings: Optional[Settings] = None,
        cache: Optional[AnalysisCache] = None,
        breaker: Optional[CircuitBreaker] = None,
        clock: ClockProtocol = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.engine = engine
        self.cache = cache if cache is not None else AnalysisCache(self.settings.cache, clock=clock)
        self.breaker = breaker if breaker is not None else CircuitBreaker(
            failure_threshold=self.settings.resilience.failure_threshold,
            cooldown_seconds=self.settings.resilience.cooldown_seconds,
            clock=clock,
        )
        self.timeout = self.settings.resilience.request_timeout_seconds
        self._metrics = _empty_metrics()
        self._successful_calls = 0
        self._pending: Set[asyncio.Task] = set()
        self._disposed = False

        self.cache.start_sweeper()
        logger.info(
            f"ResilienceOrchestrator inicializado - timeout: {self.timeout}s, "
            f"limite de falhas: {self.breaker.failure_threshold}"
        )

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _ensure_active(self) -> None:
        if self._disposed:
            raise OrchestratorDisposedError()
        if not self.cache.sweeper_running:
            self.cache.start_sweeper()

    def _coerce_request(self, request: RequestLike) -> AnalysisRequest:
        if request is None:
            raise TypeError("request não pode ser None")
        if isinstance(request, AnalysisRequest):
            validate_analysis_text(request.text, self.settings.ml.max_text_length)
            return request
        if not isinstance(request, Mapping):
            raise TypeError(f"request deve ser AnalysisRequest ou mapping, recebido {type(request).__name__}")

        validate_analysis_text(request.get("text"), self.settings.ml.max_text_length)
        try:
            return AnalysisRequest.model_validate(dict(request))
        except ValidationError as e:
            raise InvalidTextError(
                reason="Requisição de análise inválida",
                details={"errors": e.errors(include_url=False, include_context=False)}
            ) from e

    async def analyze(self, request: RequestLike) -> AnalysisResult:
        """
        Analisa um texto com cache, circuit breaker e timeout.

        Raises:
            TypeError: request ausente ou de tipo errado
            InvalidTextError: texto não-string ou maior que o limite
            CircuitOpenError: circuito aberto
            AnalysisTimeoutError: motor excedeu o tempo limite
            AnalysisFailedError: motor falhou inesperadamente
            OrchestratorDisposedError: orquestrador já finalizado
        """
        result, _ = await self.analyze_with_cache_info(request)
        return result

    async def analyze_with_cache_info(self, request: RequestLike) -> Tuple[AnalysisResult, bool]:
        """Igual a analyze(), indicando também se o resultado veio do cache."""
        self._ensure_active()
        request = self._coerce_request(request)

        self._metrics["total_requests"] += 1

        try:
            self.breaker.check()
        except CircuitOpenError:
            self._metrics["error_count"] += 1
            raise

        key = fingerprint(request.fingerprint_fields())
        cached = self.cache.get(key)
        if cached is not None:
            self._metrics["cache_hits"] += 1
            logger.debug(f"Cache hit: {key}")
            # Cópia: a entrada em cache nunca é exposta ao chamador
            return cached.model_copy(deep=True), True

        self._metrics["cache_misses"] += 1
        logger.debug(f"Cache miss: {key}")

        start_time = time.perf_counter()
        result = await self._run_engine(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        self.cache.set(key, result, text_size=len(request.text))
        self._record_success(elapsed_ms)
        return result.model_copy(deep=True), False

    async def _run_engine(self, request: AnalysisRequest) -> AnalysisResult:
        task = asyncio.ensure_future(self.engine.analyze(request))
        self._pending.add(task)
        task.add_done_callback(self._discard_task)

        try:
            # shield: no timeout a chamada continua em background e o resultado é descartado
            return await asyncio.wait_for(asyncio.shield(task), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            self._record_failure()
            raise AnalysisTimeoutError(self.timeout) from e
        except Exception as e:
            self._record_failure()
            raise AnalysisFailedError(str(e) or e.__class__.__name__) from e

    def _discard_task(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug(f"Resultado do motor descartado com erro: {exc}")

    def _record_success(self, elapsed_ms: float) -> None:
        self._successful_calls += 1
        self._metrics["total_processing_time_ms"] += elapsed_ms
        self._metrics["average_processing_time_ms"] = (
            self._metrics["total_processing_time_ms"] / self._successful_calls
        )

    def _record_failure(self) -> None:
        self._metrics["error_count"] += 1
        if self.breaker.record_failure():
            self._metrics["circuit_breaker_trips"] += 1

    async def analyze_batch(self, requests: Sequence[RequestLike]) -> List[Union[AnalysisResult, HybridMoodError]]:
        """
        Analisa vários textos concorrentemente, sem limite de concorrência.

        Returns:
            Lista na ordem de entrada; cada posição contém o resultado ou o
            erro tipado daquele item. Erros de programação propagam.
        """
        self._ensure_active()
        outcomes = await asyncio.gather(
            *(self.analyze(request) for request in requests),
            return_exceptions=True,
        )

        results: List[Union[AnalysisResult, HybridMoodError]] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(outcome, HybridMoodError):
                raise outcome
            results.append(outcome)

        failed = sum(1 for item in results if isinstance(item, HybridMoodError))
        logger.info(f"Lote processado: {len(results)} itens, {failed} falhas")
        return results

    def train(self, examples: Sequence[TrainingExample]) -> int:
        """Treina o classificador do zero e invalida o cache."""
        self._ensure_active()
        logger.info(f"Iniciando treino com {len(examples)} exemplos")
        used = self.engine.train(examples)
        self.cache.clear()
        logger.info("Treino concluído - cache invalidado")
        return used

    def export_model_state(self) -> ClassifierState:
        return self.engine.export_state()

    def load_model_state(self, state: ClassifierState) -> None:
        self._ensure_active()
        self.engine.load_state(state)
        self.cache.clear()

    def get_metrics(self) -> MetricsSnapshot:
        hits = self._metrics["cache_hits"]
        lookups = hits + self._metrics["cache_misses"]
        hit_rate = hits / lookups if lookups > 0 else 0.0

        return MetricsSnapshot(
            **self._metrics,
            cache_size=len(self.cache),
            cache_hit_rate=round(hit_rate, 2),
        )

    def reset_metrics(self) -> None:
        """Zera métricas sem tocar no cache nem no circuit breaker."""
        self._metrics = _empty_metrics()
        self._successful_calls = 0
        logger.info("Métricas do orquestrador resetadas")

    def get_breaker_state(self) -> CircuitBreakerSnapshot:
        return self.breaker.snapshot()

    def reset_circuit_breaker(self) -> None:
        self.breaker.reset()

    def clear_cache(self) -> int:
        return self.cache.clear()

    async def dispose(self) -> None:
        """Finaliza a varredura periódica e libera o cache. Idempotente."""
        if self._disposed:
            return
        self._disposed = True

        await self.cache.stop_sweeper()
        self.cache.clear()
        await self.engine.close()
        logger.info("ResilienceOrchestrator finalizado")

    def health(self) -> Dict[str, Any]:
        breaker = self.breaker.snapshot()
        if self._disposed:
            status = "unhealthy"
        elif breaker["is_open"]:
            status = "degraded"
        else:
            status = "healthy"

        return {
            "status": status,
            "circuit_breaker": breaker,
            "cache": self.cache.get_stats(),
            "classifier": self.engine.get_classifier_stats(),
            "external_predictor": self.engine.external is not None,
            "version": self.engine.version,
        }
