"""
Protocolos (interfaces) para tipagem estrutural.

Permitem trocar backends e relógios por implementações de teste.
"""
from typing import Protocol, Tuple, runtime_checkable


@runtime_checkable
class ExternalBackendProtocol(Protocol):
    """Interface de um backend de modelo pré-treinado."""

    name: str

    async def predict(self, text: str) -> Tuple[str, float]:
        """Retorna (rótulo bruto do modelo, probabilidade)."""
        ...

    async def close(self) -> None:
        """Libera conexões e recursos."""
        ...


class ClockProtocol(Protocol):
    """Fonte de tempo monotônico em segundos (substituível em testes)."""

    def __call__(self) -> float:
        ...
