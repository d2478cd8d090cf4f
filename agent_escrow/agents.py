"""
Agent identities: plain accounts and programmable approval policies
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Set

from .ids import normalize_address
from .ledger import Contract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlainAccount:
    """Key-controlled identity with no callbacks"""
    address: str


class ProgrammableAgent(Contract, ABC):
    """Agent contract that approves actions initiated by other parties"""

    @abstractmethod
    def approve_create(self, sender: str, depositant: str, beneficiary: str,
                       fee_params: Dict[str, Any], asset_params: Dict[str, Any],
                       data: bytes) -> bool:
        """Decide whether sender may create an escrow naming this agent"""

    @abstractmethod
    def approve_withdraw(self, sender: str, escrow_id: str, data: bytes) -> bool:
        """Decide whether sender may release funds of escrow_id"""

    @abstractmethod
    def approve_cancel(self, sender: str, escrow_id: str, data: bytes) -> bool:
        """Decide whether sender may cancel escrow_id"""


class OperatorAgent(ProgrammableAgent):
    """Policy agent delegating its authority to a set of operators"""

    STATE_FIELDS = ("_operators",)

    def __init__(self, operators: Iterable[str] = ()):
        self._operators: Set[str] = {normalize_address(op) for op in operators}

    def add_operator(self, operator: str) -> None:
        self._operators.add(normalize_address(operator))
        logger.info("Operator %s added to agent %s", operator, self.address)

    def remove_operator(self, operator: str) -> None:
        self._operators.discard(normalize_address(operator))
        logger.info("Operator %s removed from agent %s", operator, self.address)

    def is_operator(self, address: str) -> bool:
        return normalize_address(address) in self._operators

    def approve_create(self, sender, depositant, beneficiary, fee_params, asset_params, data):
        return self.is_operator(sender)

    def approve_withdraw(self, sender, escrow_id, data):
        return self.is_operator(sender)

    def approve_cancel(self, sender, escrow_id, data):
        return self.is_operator(sender)
