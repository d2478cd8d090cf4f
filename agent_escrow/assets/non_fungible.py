from typing import Dict, Optional, Set

from ..ids import normalize_address
from ..ledger import Contract


class NonFungibleToken(Contract):
    """Non-fungible token contract: one owner per token id"""

    STATE_FIELDS = ("_owners", "_approvals", "_operators")

    def __init__(self, name: str, symbol: str):
        self.name = name
        self.symbol = symbol
        self._owners: Dict[int, str] = {}
        self._approvals: Dict[int, str] = {}
        self._operators: Dict[str, Set[str]] = {}  # owner -> operators

    def owner_of(self, token_id: int) -> Optional[str]:
        return self._owners.get(token_id)

    def balance_of(self, address: str) -> int:
        address = normalize_address(address)
        return sum(1 for owner in self._owners.values() if owner == address)

    def mint(self, to: str, token_id: int) -> None:
        if token_id in self._owners:
            raise ValueError(f"Token {token_id} already minted")
        self._owners[token_id] = normalize_address(to)

    def approve(self, sender: str, approved: str, token_id: int) -> bool:
        """Let approved move token_id; only the owner or an operator may call"""
        owner = self.owner_of(token_id)
        if owner is None or not self._can_manage(sender, owner):
            return False

        self._approvals[token_id] = normalize_address(approved)
        return True

    def get_approved(self, token_id: int) -> Optional[str]:
        return self._approvals.get(token_id)

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> bool:
        operators = self._operators.setdefault(normalize_address(owner), set())
        if approved:
            operators.add(normalize_address(operator))
        else:
            operators.discard(normalize_address(operator))
        return True

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return normalize_address(operator) in self._operators.get(normalize_address(owner), set())

    def transfer_from(self, sender: str, from_address: str, to: str, token_id: int) -> bool:
        """Move token_id from its owner; sender must be owner, approved or operator"""
        owner = self.owner_of(token_id)
        if owner is None or owner != normalize_address(from_address):
            return False

        sender = normalize_address(sender)
        if not (self._can_manage(sender, owner) or self._approvals.get(token_id) == sender):
            return False

        self._approvals.pop(token_id, None)
        self._owners[token_id] = normalize_address(to)
        return True

    def _can_manage(self, sender: str, owner: str) -> bool:
        sender = normalize_address(sender)
        return sender == owner or self.is_approved_for_all(owner, sender)
