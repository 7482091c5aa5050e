import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    url: str = Field(default="sqlite:///./data/hybridmood.db")
    pool_size: int = Field(default=10, ge=1, le=50)
    max_overflow: int = Field(default=20, ge=0, le=100)
    pool_timeout: int = Field(default=30, ge=5, le=300)
    pool_recycle: int = Field(default=3600, ge=300, le=86400)
    echo: bool = Field(default=False)

    @field_validator("url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v:
            raise ValueError("URL do banco de dados não pode estar vazia")
        if v.startswith("sqlite:///") and ":memory:" not in v:
            db_path = Path(v.replace("sqlite:///", ""))
            db_path.parent.mkdir(parents=True, exist_ok=True)
        return v


class CacheConfig(BaseModel):
    ttl_seconds: float = Field(default=3600, gt=0, le=86400)
    max_entries: int = Field(default=10000, ge=1, le=1_000_000)
    eviction_fraction: float = Field(default=0.2, gt=0.0, le=1.0)
    sweep_interval_seconds: float = Field(default=300, gt=0, le=86400)


class ResilienceConfig(BaseModel):
    request_timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    failure_threshold: int = Field(default=5, ge=1, le=1000)
    cooldown_seconds: float = Field(default=60.0, gt=0, le=3600)


class EnsembleConfig(BaseModel):
    default_language: str = Field(default="en", min_length=2, max_length=5)
    lexicon_weight: float = Field(default=0.5, gt=0.0)
    statistical_weight: float = Field(default=0.5, gt=0.0)
    lexicon_weight_with_external: float = Field(default=0.25, gt=0.0)
    statistical_weight_with_external: float = Field(default=0.25, gt=0.0)
    external_weight: float = Field(default=0.5, gt=0.0)
    engine_version: str = Field(default="1.0.0")

    @field_validator("default_language")
    @classmethod
    def validate_default_language(cls, v: str) -> str:
        return v.lower()


class ExternalModelConfig(BaseModel):
    enabled: bool = Field(default=False)
    backend: Literal["inference_api", "transformers"] = Field(default="inference_api")
    model_name: str = Field(default="finiteautomata/bertweet-base-sentiment-analysis")
    endpoint: str = Field(default="https://api-inference.huggingface.co/models")
    api_key: Optional[str] = Field(default=None)
    timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    device: Literal["auto", "cpu", "cuda"] = Field(default="auto")
    model_cache_dir: Optional[str] = Field(default="./models")

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Endpoint do modelo externo deve começar com http:// ou https://")
        return v.rstrip("/")


class MLConfig(BaseModel):
    max_text_length: int = Field(default=2000, ge=10, le=100000)
    smoothing: float = Field(default=1.0, gt=0.0, le=10.0)
    bootstrap_on_startup: bool = Field(default=True)
    restore_latest_snapshot: bool = Field(default=True)


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1024, le=65535)
    workers: int = Field(default=1, ge=1, le=16)
    reload: bool = Field(default=False)


class Settings(BaseSettings):
    """Configurações principais do serviço HybridMood."""

    model_config = SettingsConfigDict(
        env_prefix="HYBRIDMOOD_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Configurações da aplicação
    app_name: str = Field(default="HybridMood")
    app_version: str = Field(default="1.0.0")
    app_description: str = Field(default="Motor híbrido de análise de sentimentos com ensemble resiliente")
    debug: bool = Field(default=False)
    environment: Literal["development", "staging", "production"] = Field(default="development")

    # Configurações por domínio
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    resilience: ResilienceConfig = Field(default_factory=ResilienceConfig)
    ensemble: EnsembleConfig = Field(default_factory=EnsembleConfig)
    external: ExternalModelConfig = Field(default_factory=ExternalModelConfig)
    ml: MLConfig = Field(default_factory=MLConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    # Configurações de logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # CORS dinâmico baseado em ambiente
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173", "http://127.0.0.1:5173"]
    )
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"])
    cors_allow_headers: list[str] = Field(default=["*"])
    cors_production_origins: list[str] = Field(
        default_factory=lambda: ["https://hybridmood.example.com"]
    )

    @property
    def effective_cors_origins(self) -> list[str]:
        """Retorna CORS origins baseado no ambiente."""
        if self.is_production:
            return self.cors_production_origins
        return self.cors_origins

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"Nível de log inválido: {v}")
        logging.basicConfig(
            level=getattr(logging, level),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        return level

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def engine_tag(self) -> str:
        return f"{self.ensemble.engine_version}-unified"

    def get_database_url(self) -> str:
        return self.database.url


@lru_cache()
def get_settings() -> Settings:
    """Factory para obter instância singleton das configurações."""
    return Settings()


# Instância global das configurações
settings = get_settings()

logger = logging.getLogger(__name__)
logger.info(f"Configurações carregadas - Ambiente: {settings.environment}")
