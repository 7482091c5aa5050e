from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

SentimentLabelField = Literal["positive", "negative", "neutral"]


class AnalysisRequest(BaseModel):
    """Request para análise individual de sentimento.

    O tamanho do texto é validado pelo orquestrador; texto vazio é aceito e
    resulta em uma análise neutra.
    """

    text: Annotated[
        str,
        Field(
            description="Texto a ser analisado",
            examples=["I love this product! It's amazing!", "Oh great, another bug in the app. Just perfect!"]
        )
    ]

    language: Annotated[
        Optional[str],
        Field(
            default=None,
            min_length=2,
            max_length=5,
            description="Código do idioma (en, es, fr, de). Ausente: estimado pelo léxico",
        )
    ] = None

    sarcasm_detection_enabled: bool = Field(
        default=True,
        description="Se False, indicadores de sarcasmo são ignorados"
    )

    context_window_enabled: bool = Field(
        default=True,
        description="Se False, o ensemble usa apenas os pesos base"
    )

    max_tokens: Annotated[
        Optional[int],
        Field(
            default=None,
            ge=1,
            description="Trunca o texto nos primeiros N tokens separados por espaço"
        )
    ] = None

    @field_validator("language")
    @classmethod
    def normalize_language(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip().lower()

    def fingerprint_fields(self) -> Dict[str, Any]:
        """Campos normalizados que identificam a requisição no cache."""
        return {
            "text": self.text.strip(),
            "language": self.language,
            "sarcasm_detection_enabled": self.sarcasm_detection_enabled,
            "context_window_enabled": self.context_window_enabled,
            "max_tokens": self.max_tokens,
        }

    model_config = {
        "validate_assignment": True,
        "extra": "forbid"
    }


class EmotionScores(BaseModel):
    """Sub-scores de emoção derivados do score e da confiança finais."""

    joy: float = Field(ge=0.0, le=1.0)
    sadness: float = Field(ge=0.0, le=1.0)
    anger: float = Field(ge=0.0, le=1.0)
    fear: float = Field(ge=0.0, le=1.0)
    surprise: float = Field(ge=0.0, le=1.0)
    disgust: float = Field(ge=0.0, le=1.0)


class SentimentBreakdown(BaseModel):
    label: SentimentLabelField
    score: Annotated[float, Field(ge=-1.0, le=1.0, description="Polaridade contínua")]
    magnitude: Annotated[float, Field(ge=0.0, le=1.0)]
    confidence: Annotated[float, Field(ge=0.0, le=1.0, description="Certeza do ensemble")]
    emotions: EmotionScores


class SignalBreakdown(BaseModel):
    token_count: int = Field(ge=0)
    negation_flips: int = Field(ge=0)
    intensifier_boost: float = Field(ge=0.0)
    sarcasm_score: int = Field(ge=0)


class AnalysisResult(BaseModel):
    """Resultado completo de uma análise. Imutável."""

    sentiment: SentimentBreakdown
    keywords: List[str] = Field(default_factory=list)
    language: str
    signals: SignalBreakdown
    version: str = Field(description="Versão do motor; sufixo -external quando o preditor externo participou")
    weights: Dict[str, float] = Field(
        default_factory=dict,
        description="Pesos finais por preditor"
    )
    adjustments: List[str] = Field(
        default_factory=list,
        description="Ajustes contextuais aplicados pelo ensemble"
    )
    explanation: str = Field(default="")

    model_config = {
        "frozen": True,
        "extra": "forbid"
    }


class AnalysisResponse(AnalysisResult):
    """Resultado acrescido de metadados do orquestrador."""

    cached: bool = Field(
        default=False,
        description="Se o resultado foi obtido do cache"
    )
    processing_time_ms: Annotated[
        Optional[float],
        Field(ge=0.0, description="Tempo de processamento no servidor")
    ] = None


class BatchRequest(BaseModel):
    """Request para análise em lote."""

    items: Annotated[
        List[AnalysisRequest],
        Field(
            min_length=1,
            max_length=100,
            description="Requisições analisadas concorrentemente (máximo 100 itens)"
        )
    ]

    model_config = {
        "extra": "forbid"
    }


class BatchItemError(BaseModel):
    error: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class BatchItemResult(BaseModel):
    """Resultado de um item do lote: sucesso ou erro tipado."""

    index: int = Field(ge=0)
    result: Optional[AnalysisResult] = None
    error: Optional[BatchItemError] = None

    @model_validator(mode="after")
    def validate_outcome(self) -> "BatchItemResult":
        if (self.result is None) == (self.error is None):
            raise ValueError("Item do lote deve ter exatamente um entre result e error")
        return self


class BatchResponse(BaseModel):
    """Response para análise em lote."""

    results: List[BatchItemResult] = Field(description="Resultados na ordem de entrada")
    total_processed: Annotated[int, Field(ge=0)]
    failed: Annotated[int, Field(ge=0)] = 0
    processing_time_ms: Annotated[Optional[float], Field(ge=0.0)] = None

    @model_validator(mode="after")
    def validate_consistency(self) -> "BatchResponse":
        """Valida consistência entre resultados e contadores."""
        if len(self.results) != self.total_processed:
            raise ValueError("Inconsistência entre resultados e contador")
        return self

    model_config = {
        "extra": "forbid"
    }


class TrainingExample(BaseModel):
    text: Annotated[str, Field(min_length=1, max_length=2000)]
    label: SentimentLabelField


class TrainRequest(BaseModel):
    """Substitui todo o estado do classificador estatístico."""

    examples: Annotated[
        List[TrainingExample],
        Field(min_length=1, max_length=50000, description="Exemplos (texto, rótulo) em ordem")
    ]

    def as_pairs(self) -> List[tuple]:
        return [(example.text, example.label) for example in self.examples]


class ClassifierStatsResponse(BaseModel):
    trained: bool
    vocabulary_size: int
    total_documents: int
    class_counts: Dict[str, int]
    total_words_per_class: Dict[str, int]


class TrainResponse(BaseModel):
    examples_used: int = Field(ge=0)
    stats: ClassifierStatsResponse


class SnapshotResponse(BaseModel):
    """Snapshot persistido do classificador (sem o estado completo)."""

    id: str
    engine_version: str
    vocabulary_size: int
    total_documents: int
    checksum: str
    created_at: datetime

    model_config = {
        "from_attributes": True
    }


class CircuitBreakerResponse(BaseModel):
    is_open: bool
    failure_count: int
    last_failure_time: Optional[float] = None
    next_attempt_time: Optional[float] = None


class MetricsResponse(BaseModel):
    """Métricas do orquestrador."""

    total_requests: int = Field(ge=0)
    cache_hits: int = Field(ge=0)
    cache_misses: int = Field(ge=0)
    error_count: int = Field(ge=0)
    average_processing_time_ms: float = Field(ge=0.0)
    total_processing_time_ms: float = Field(ge=0.0)
    circuit_breaker_trips: int = Field(ge=0)
    cache_size: int = Field(ge=0)
    cache_hit_rate: float = Field(ge=0.0, le=1.0)
    circuit_breaker: Optional[CircuitBreakerResponse] = None


class HealthResponse(BaseModel):
    """Response para verificação de saúde."""

    status: Literal["healthy", "degraded", "unhealthy"]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    services: Dict[str, Any] = Field(
        default_factory=dict,
        description="Status dos serviços"
    )
    version: str = Field(default="1.0.0")

    model_config = {
        "extra": "allow"
    }


class ErrorResponse(BaseModel):
    """Response padronizada para erros."""

    error: str = Field(description="Tipo do erro")
    message: str = Field(description="Mensagem descritiva do erro")
    details: Dict[str, Any] = Field(default_factory=dict)
    request_id: Optional[str] = Field(
        default=None,
        description="ID da requisição para rastreamento"
    )
