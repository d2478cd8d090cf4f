"""
Fungible token with balances and allowances

Failed transfers return False and leave state untouched; callers that need
hard failures check the result.
"""

from dataclasses import dataclass
from typing import Dict

from ..ids import normalize_address
from ..ledger import Contract


@dataclass
class TokenMetadata:
    """Fungible token metadata"""
    name: str
    symbol: str
    decimals: int


class FungibleToken(Contract):
    """Fungible token contract"""

    STATE_FIELDS = ("_balances", "_allowances", "_total_supply")

    def __init__(self, name: str, symbol: str, decimals: int = 18):
        self.metadata = TokenMetadata(name=name, symbol=symbol, decimals=decimals)
        self._balances: Dict[str, int] = {}  # address -> balance
        self._allowances: Dict[str, Dict[str, int]] = {}  # owner -> spender -> amount
        self._total_supply = 0

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        """Get token balance for address"""
        return self._balances.get(normalize_address(address), 0)

    def mint(self, to: str, amount: int) -> None:
        """Credit newly issued tokens to an address"""
        if amount < 0:
            raise ValueError("Mint amount must be non-negative")

        to = normalize_address(to)
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Transfer tokens from sender to another address"""
        if amount < 0:
            return False

        sender = normalize_address(sender)
        to = normalize_address(to)

        from_balance = self.balance_of(sender)
        if from_balance < amount:
            return False

        # Execute transfer
        self._balances[sender] = from_balance - amount
        self._balances[to] = self.balance_of(to) + amount
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Approve spender to transfer tokens on behalf of owner"""
        if amount < 0:
            return False

        owner = normalize_address(owner)
        self._allowances.setdefault(owner, {})[normalize_address(spender)] = amount
        return True

    def allowance(self, owner: str, spender: str) -> int:
        """Get approved allowance"""
        return self._allowances.get(normalize_address(owner), {}).get(normalize_address(spender), 0)

    def transfer_from(self, spender: str, from_address: str, to: str, amount: int) -> bool:
        """Transfer tokens using allowance"""
        allowed = self.allowance(from_address, spender)
        if allowed < amount:
            return False

        if not self.transfer(from_address, to, amount):
            return False

        # Reduce allowance
        self._allowances.setdefault(normalize_address(from_address), {})[normalize_address(spender)] = allowed - amount
        return True
