import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class HybridMoodError(Exception):
    """Exceção base para todas as exceções do HybridMood."""

    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__

        logger.log(
            self.log_level,
            f"Exceção {self.__class__.__name__}: {message}",
            extra={"details": self.details, "error_code": self.error_code}
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Detalhes: {self.details})"
        return self.message


# Exceções de configuração
class ConfigurationError(HybridMoodError):
    """Erros de configuração da aplicação."""
    pass


# Exceções de banco de dados
class DatabaseError(HybridMoodError):
    """Exceção base para erros de banco de dados."""
    pass


class RecordNotFoundError(DatabaseError):
    """Registro não encontrado."""

    def __init__(self, resource: str = "Registro", record_id: Any = None, **kwargs):
        message = f"{resource} não encontrado"
        if record_id is not None:
            message += f" (ID: {record_id})"

        details = kwargs.get("details", {})
        details.update({"resource": resource, "record_id": record_id})
        kwargs["details"] = details

        super().__init__(message, **kwargs)


# Exceções de Machine Learning
class MLError(HybridMoodError):
    """Exceção base para erros dos preditores."""
    pass


class ModelLoadError(MLError):
    """Erro ao carregar modelo ou estado do classificador."""

    def __init__(self, model_name: str, message: str = "Erro ao carregar modelo", **kwargs):
        full_message = f"{message}: {model_name}"

        details = kwargs.get("details", {})
        details.update({"model_name": model_name})
        kwargs["details"] = details

        super().__init__(full_message, **kwargs)


class InvalidTextError(MLError):
    """Texto inválido para análise (rejeitado antes do motor)."""

    def __init__(self, reason: str, text_sample: Optional[str] = None, **kwargs):
        message = f"Texto inválido: {reason}"

        details = kwargs.get("details", {})
        details.update({"reason": reason})
        if text_sample:
            details["text_sample"] = text_sample[:100] + "..." if len(text_sample) > 100 else text_sample
        kwargs["details"] = details

        super().__init__(message=message, **kwargs)


class EnsembleInputError(MLError):
    """Lista de predições inválida para o ensemble."""

    def __init__(self, reason: str, **kwargs):
        details = kwargs.get("details", {})
        details.update({"reason": reason})
        kwargs["details"] = details

        super().__init__(f"Entrada inválida para o ensemble: {reason}", **kwargs)


class ExternalPredictorError(MLError):
    """Falha do preditor externo. Sempre absorvida pelo motor."""

    log_level = logging.WARNING

    def __init__(self, backend: str, reason: str, **kwargs):
        details = kwargs.get("details", {})
        details.update({"backend": backend, "reason": reason})
        kwargs["details"] = details

        super().__init__(f"Preditor externo indisponível ({backend}): {reason}", **kwargs)


# Exceções de resiliência
class ResilienceError(HybridMoodError):
    """Exceção base para erros do orquestrador."""
    pass


class CircuitOpenError(ResilienceError):
    """Circuit breaker aberto: serviço temporariamente indisponível."""

    def __init__(self, retry_after: float, **kwargs):
        self.retry_after = max(0.0, retry_after)

        details = kwargs.get("details", {})
        details.update({"retry_after_seconds": round(self.retry_after, 3)})
        kwargs["details"] = details

        super().__init__("Serviço de análise temporariamente indisponível", **kwargs)


class AnalysisTimeoutError(ResilienceError):
    """Análise excedeu o tempo limite."""

    def __init__(self, timeout: float, **kwargs):
        details = kwargs.get("details", {})
        details.update({"timeout_seconds": timeout})
        kwargs["details"] = details

        super().__init__(f"Análise excedeu o tempo limite de {timeout}s", **kwargs)


class AnalysisFailedError(ResilienceError):
    """Falha inesperada do motor de análise."""

    def __init__(self, reason: str, **kwargs):
        details = kwargs.get("details", {})
        details.update({"reason": reason})
        kwargs["details"] = details

        super().__init__(f"Falha no motor de análise: {reason}", **kwargs)


class OrchestratorDisposedError(ResilienceError):
    """Uso do orquestrador após dispose()."""

    def __init__(self, message: str = "Orquestrador já foi finalizado", **kwargs):
        super().__init__(message, **kwargs)


def validate_analysis_text(text: Any, max_length: int = 2000) -> None:
    """Valida texto e levanta exceção se inválido.

    Texto vazio é aceito: o motor devolve um resultado neutro para ele.
    """
    if not isinstance(text, str):
        raise InvalidTextError(
            reason="Texto deve ser uma string",
            details={"received_type": type(text).__name__}
        )

    if len(text) > max_length:
        raise InvalidTextError(
            reason=f"Texto muito longo (máximo: {max_length} caracteres)",
            text_sample=text,
            details={"text_length": len(text), "max_length": max_length}
        )


logger.info("Módulo de exceções carregado")
