from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Type, TypeVar

E = TypeVar("E", bound="EscrowEvent")


@dataclass(frozen=True)
class EscrowEvent:
    """Base for events emitted by escrow engines"""
    emitter: str

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['event'] = self.name
        return data


@dataclass(frozen=True)
class CreateEscrow(EscrowEvent):
    escrow_id: str
    agent: str
    depositant: str
    beneficiary: str
    agent_fee: int
    token: str
    salt: int
    agent_data: bytes

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['agent_data'] = self.agent_data.hex()
        return data


@dataclass(frozen=True)
class CreateNonFungibleEscrow(EscrowEvent):
    escrow_id: str
    agent: str
    depositant: str
    beneficiary: str
    token721: str
    token_id: int
    token20: str
    agent_fixed_fee: int
    salt: int


@dataclass(frozen=True)
class SignCreateEscrow(EscrowEvent):
    escrow_id: str
    agent_signature: str


@dataclass(frozen=True)
class CancelSignature(EscrowEvent):
    signer: str
    agent_signature: str


@dataclass(frozen=True)
class Deposit(EscrowEvent):
    escrow_id: str
    sender: str
    amount: int


@dataclass(frozen=True)
class Withdraw(EscrowEvent):
    escrow_id: str
    sender: str
    to: str
    to_amount: int
    to_agent: int


@dataclass(frozen=True)
class NonFungibleWithdraw(EscrowEvent):
    escrow_id: str
    sender: str
    to: str
    token_id: int
    to_agent: int


@dataclass(frozen=True)
class Cancel(EscrowEvent):
    escrow_id: str
    amount: int


@dataclass(frozen=True)
class NonFungibleCancel(EscrowEvent):
    escrow_id: str
    amount: int
    token_refunded: bool


class EventLog:
    """Append-only record of emitted events"""

    def __init__(self):
        self._events: List[EscrowEvent] = []

    def emit(self, event: EscrowEvent) -> None:
        self._events.append(event)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))

    def truncate(self, length: int) -> None:
        """Drop events recorded after length (used on rollback)"""
        del self._events[length:]

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [e for e in self._events if isinstance(e, event_type)]

    def last(self, event_type: Type[E]) -> Optional[E]:
        matching = self.of_type(event_type)
        return matching[-1] if matching else None

    def since(self, length: int) -> List[EscrowEvent]:
        return list(self._events[length:])
