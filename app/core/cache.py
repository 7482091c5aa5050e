import asyncio
import hashlib
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from app.config import CacheConfig
from app.core.protocols import ClockProtocol

logger = logging.getLogger(__name__)


class CacheMetrics:
    """Métricas básicas de cache em memória."""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.evictions = 0
        self.expirations = 0

    def hit(self) -> None:
        self.hits += 1

    def miss(self) -> None:
        self.misses += 1

    def set_operation(self) -> None:
        self.sets += 1

    def evicted(self, count: int) -> None:
        self.evictions += count

    def expired(self, count: int) -> None:
        self.expirations += count

    @property
    def hit_rate(self) -> float:
        total_reads = self.hits + self.misses
        return self.hits / total_reads if total_reads > 0 else 0.0

    def to_dict(self) -> Dict[str, Union[int, float]]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "hit_rate": self.hit_rate,
        }


@dataclass
class CacheEntry:
    """Entrada do cache. Só o contador de hits muda após a criação."""
    result: Any
    timestamp: float
    hit_count: int = 0
    text_size: int = 0


def fingerprint(fields: Mapping[str, Any]) -> str:
    """Gera chave MD5 a partir dos campos normalizados da requisição."""
    canonical = json.dumps(dict(fields), sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


class AnalysisCache:
    """Cache em memória com TTL, limite de capacidade e varredura periódica.

    Pertence a um único orquestrador; nunca é compartilhado entre instâncias.
    """

    def __init__(self, config: Optional[CacheConfig] = None, clock: ClockProtocol = time.monotonic):
        self.config = config if config is not None else CacheConfig()
        self.metrics = CacheMetrics()
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._sweep_task: Optional[asyncio.Task] = None
        logger.info(
            f"AnalysisCache inicializado - TTL: {self.config.ttl_seconds}s, "
            f"capacidade: {self.config.max_entries}"
        )

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp >= self.config.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        """Obtém resultado do cache, incrementando o contador de hits da entrada."""
        entry = self._store.get(key)
        if entry is None:
            self.metrics.miss()
            return None

        if self._is_expired(entry, self._clock()):
            del self._store[key]
            self.metrics.expired(1)
            self.metrics.miss()
            return None

        entry.hit_count += 1
        self.metrics.hit()
        return entry.result

    def peek(self, key: str) -> Optional[CacheEntry]:
        return self._store.get(key)

    def set(self, key: str, result: Any, text_size: int = 0) -> None:
        """Armazena resultado; abre espaço por evicção quando na capacidade máxima."""
        if key not in self._store and len(self._store) >= self.config.max_entries:
            self._evict()

        self._store[key] = CacheEntry(result=result, timestamp=self._clock(), text_size=text_size)
        self.metrics.set_operation()

    def _evict(self) -> int:
        """Remove a fração de entradas com menos hits (mínimo uma)."""
        count = max(1, math.floor(self.config.max_entries * self.config.eviction_fraction))
        # sorted é estável: empates removem as entradas mais antigas primeiro
        victims: List[str] = [
            key for key, _ in sorted(self._store.items(), key=lambda item: item[1].hit_count)[:count]
        ]
        for key in victims:
            del self._store[key]

        self.metrics.evicted(len(victims))
        logger.info(f"Cache na capacidade máxima: {len(victims)} entradas removidas")
        return len(victims)

    def sweep_expired(self) -> int:
        """Remove entradas com TTL expirado."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._store[key]

        if expired:
            self.metrics.expired(len(expired))
            logger.info(f"Varredura do cache removeu {len(expired)} entradas expiradas")
        return len(expired)

    def clear(self) -> int:
        cleared = len(self._store)
        self._store.clear()
        logger.debug(f"Cache limpo: {cleared} entradas")
        return cleared

    def get_stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._store),
            "max_entries": self.config.max_entries,
            "ttl_seconds": self.config.ttl_seconds,
            "sweeper_running": self.sweeper_running,
            "metrics": self.metrics.to_dict(),
        }

    # Varredura periódica

    @property
    def sweeper_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start_sweeper(self) -> bool:
        """Inicia task de varredura com verificação de event loop."""
        if self.sweeper_running:
            return True
        try:
            self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())
            return True
        except RuntimeError:
            # Sem event loop ativo - a varredura será iniciada no primeiro uso assíncrono
            logger.debug("Event loop não disponível - varredura do cache será iniciada posteriormente")
            self._sweep_task = None
            return False

    async def _sweep_loop(self) -> None:
        """Loop de varredura para remover entradas expiradas."""
        while True:
            try:
                await asyncio.sleep(self.config.sweep_interval_seconds)
                self.sweep_expired()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Erro na varredura do cache: {e}")

    async def stop_sweeper(self) -> None:
        task = self._sweep_task
        self._sweep_task = None
        if task is None or task.done():
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Varredura do cache finalizada")
