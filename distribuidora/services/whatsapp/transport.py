# distribuidora/services/whatsapp/transport.py

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Callable, Optional, Union


class DisconnectReason(str, Enum):
    LOGGED_OUT = "logged_out"  # sessão revogada: não reconectar
    TRANSIENT = "transient"


@dataclass(frozen=True)
class PairingCodeAvailable:
    code: str


@dataclass(frozen=True)
class Opened:
    pass


@dataclass(frozen=True)
class Closed:
    reason: DisconnectReason
    detail: Optional[str] = None


@dataclass(frozen=True)
class CredentialsRotated:
    credentials: bytes = field(repr=False)


TransportEvent = Union[PairingCodeAvailable, Opened, Closed, CredentialsRotated]


class Transport(ABC):
    """Conexão de tempo real com a rede de mensagens (uma instância por tentativa)."""

    @abstractmethod
    def open(self, credentials: Optional[bytes]) -> AsyncIterator[TransportEvent]:
        """Conecta e produz eventos de ciclo de vida até a conexão cair."""

    @abstractmethod
    async def send(self, recipient_id: str, text: str) -> str:
        """Envia texto e devolve o id atribuído pela rede. Válido após Opened."""

    @abstractmethod
    async def close(self) -> None:
        """Fecha a conexão sem invalidar as credenciais."""

    async def logout(self) -> None:
        """Desvincula o dispositivo no servidor. Por padrão apenas fecha."""
        await self.close()


TransportFactory = Callable[[], Transport]
