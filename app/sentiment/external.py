"""
Preditor externo opcional baseado em modelos pré-treinados.

Dois backends:
- InferenceAPIBackend: endpoint HTTP de inferência hospedado (httpx)
- TransformerBackend: pipeline local do transformers, carregado sob demanda

Qualquer falha vira ExternalPredictorError; o motor de análise trata esse
erro como "preditor indisponível".
"""
import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from app.config import ExternalModelConfig, Settings
from app.core.exceptions import ConfigurationError, ExternalPredictorError, ModelLoadError
from app.core.protocols import ExternalBackendProtocol
from app.sentiment.types import ModelPrediction, SentimentLabel

logger = logging.getLogger(__name__)

EXTERNAL_SCORE_SCALE = 0.8

LABEL_MAPPING: Dict[str, SentimentLabel] = {
    "POS": "positive",
    "NEU": "neutral",
    "NEG": "negative",
    "POSITIVE": "positive",
    "NEUTRAL": "neutral",
    "NEGATIVE": "negative",
    "LABEL_0": "negative",  # cardiffnlp format
    "LABEL_1": "neutral",
    "LABEL_2": "positive",
}


def flatten_results(raw_results: Union[List[Dict], List[List[Dict]]]) -> List[Dict]:
    """Normaliza saídas de modelo para uma lista plana de {label, score}."""
    if not raw_results or not isinstance(raw_results, list):
        raise ValueError("Resultado do modelo inválido ou vazio")

    first_item = raw_results[0]
    if isinstance(first_item, dict):
        return raw_results
    if isinstance(first_item, list) and first_item and isinstance(first_item[0], dict):
        return first_item

    raise ValueError(f"Formato inesperado: {type(first_item)}")


def best_label(raw_results: Union[List[Dict], List[List[Dict]]]) -> Tuple[str, float]:
    """Retorna (rótulo bruto, probabilidade) da classe mais provável."""
    candidates = [
        item for item in flatten_results(raw_results)
        if isinstance(item, dict) and "label" in item and "score" in item
    ]
    if not candidates:
        raise ValueError("Nenhum score válido encontrado")

    best = max(candidates, key=lambda item: float(item["score"]))
    return str(best["label"]), float(best["score"])


class InferenceAPIBackend:
    """Backend HTTP para endpoints de inferência hospedados."""

    name = "inference_api"

    def __init__(self, config: ExternalModelConfig, client: Optional[httpx.AsyncClient] = None):
        self._url = f"{config.endpoint}/{config.model_name}"
        self._headers = {"Content-Type": "application/json"}
        if config.api_key:
            self._headers["Authorization"] = f"Bearer {config.api_key}"
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._owns_client = client is None

    async def predict(self, text: str) -> Tuple[str, float]:
        response = await self._client.post(self._url, json={"inputs": text}, headers=self._headers)
        response.raise_for_status()
        return best_label(response.json())

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class TransformerBackend:
    """Backend local com pipeline do transformers.

    Implementa lazy loading: o modelo só é carregado na primeira predição.
    """

    name = "transformers"

    def __init__(self, config: ExternalModelConfig, max_length: int = 512):
        self._config = config
        self._max_length = max_length
        self._pipeline = None
        self._device: Optional[int] = None
        self._lock = threading.Lock()
        logger.info("TransformerBackend inicializado (modelo será carregado sob demanda)")

    def _ensure_model_loaded(self) -> None:
        if self._pipeline is not None:
            return

        with self._lock:
            if self._pipeline is None:
                self._pipeline = self._load_pipeline()

    def _load_pipeline(self):
        try:
            import torch
            from transformers import pipeline

            logger.info(f"Carregando modelo: {self._config.model_name}")
            self._device = self._get_device(torch)
            logger.info(f"Dispositivo selecionado: {self._device}")

            return pipeline(
                task="sentiment-analysis",
                model=self._config.model_name,
                device=self._device,
                truncation=True,
                max_length=self._max_length,
                top_k=None,
                model_kwargs={"cache_dir": self._config.model_cache_dir},
            )
        except Exception as e:
            raise ModelLoadError(
                model_name=self._config.model_name,
                message="Falha ao carregar modelo transformer",
                details={"error": str(e), "device": str(self._device)}
            ) from e

    def _get_device(self, torch: Any) -> int:
        device_config = self._config.device

        if device_config == "cpu":
            return -1
        if device_config == "cuda" and torch.cuda.is_available():
            return 0
        if device_config == "auto":
            return 0 if torch.cuda.is_available() else -1

        logger.warning(f"Dispositivo {device_config} indisponível, usando CPU")
        return -1

    def _predict_sync(self, text: str) -> Tuple[str, float]:
        self._ensure_model_loaded()
        with self._lock:
            raw_results = self._pipeline(text)
        return best_label(raw_results)

    async def predict(self, text: str) -> Tuple[str, float]:
        return await asyncio.to_thread(self._predict_sync, text)

    async def close(self) -> None:
        self._pipeline = None


class ExternalPredictor:
    """Adapta um backend ao contrato ModelPrediction com timeout próprio."""

    name = "transformer"

    def __init__(self, backend: ExternalBackendProtocol, timeout: float = 10.0):
        self.backend = backend
        self.timeout = timeout

    async def predict(self, text: str) -> ModelPrediction:
        try:
            raw_label, probability = await asyncio.wait_for(self.backend.predict(text), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ExternalPredictorError(self.backend.name, f"timeout após {self.timeout}s") from e
        except ExternalPredictorError:
            raise
        except Exception as e:
            raise ExternalPredictorError(self.backend.name, str(e) or e.__class__.__name__) from e

        label = LABEL_MAPPING.get(raw_label.upper())
        if label is None:
            raise ExternalPredictorError(self.backend.name, f"rótulo desconhecido: {raw_label}")

        confidence = max(0.0, min(1.0, probability))
        if label == "positive":
            score = confidence * EXTERNAL_SCORE_SCALE
        elif label == "negative":
            score = -confidence * EXTERNAL_SCORE_SCALE
        else:
            score = 0.0

        return ModelPrediction(label=label, confidence=confidence, score=score, method="transformer")

    async def close(self) -> None:
        await self.backend.close()


def create_external_predictor(settings: Settings) -> Optional[ExternalPredictor]:
    """Cria o preditor externo configurado, ou None quando desabilitado."""
    config = settings.external
    if not config.enabled:
        return None

    if not config.model_name.strip():
        raise ConfigurationError(
            "Preditor externo habilitado sem model_name",
            details={"backend": config.backend}
        )

    if config.backend == "transformers":
        backend: ExternalBackendProtocol = TransformerBackend(config)
    else:
        backend = InferenceAPIBackend(config)

    logger.info(f"Preditor externo habilitado: {config.backend} ({config.model_name})")
    return ExternalPredictor(backend, timeout=config.timeout_seconds)
