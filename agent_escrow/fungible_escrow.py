"""
Escrow of fungible token balances with a percentage agent fee
"""

import logging
from dataclasses import dataclass, asdict, replace

from .errors import ArithmeticOverflow, ArithmeticUnderflow, ExternalCallFailure, Unauthorized
from .engine import EscrowEngine
from .events import Cancel, CreateEscrow, Deposit, Withdraw
from .fees import split_fee, validate_fee_bps
from .ids import UINT256_MAX, fungible_escrow_id, normalize_address, normalize_id, require_uint
from .ledger import atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FungibleEscrow:
    """Custody record of a fungible escrow"""
    agent: str
    depositant: str
    beneficiary: str
    agent_fee: int  # basis points
    token: str
    balance: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class FungibleEscrowEngine(EscrowEngine):
    """Holds fungible tokens until the agent or the counterparties release them"""

    def calculate_id(self, agent: str, depositant: str, beneficiary: str,
                     agent_fee: int, token: str, salt: int) -> str:
        """Derive the id of an escrow on this engine"""
        return fungible_escrow_id(self.address, agent, depositant, beneficiary, agent_fee, token, salt)

    @atomic
    def create_escrow(self, sender: str, agent: str, depositant: str, beneficiary: str,
                      agent_fee: int, token: str, salt: int, agent_data: bytes = b"") -> str:
        """Create an escrow; a third-party sender needs the agent's approval"""
        escrow_id = self._create(agent, depositant, beneficiary, agent_fee, token, salt, agent_data)

        if normalize_address(sender) != normalize_address(agent):
            self._consult_agent(
                agent, "create", sender,
                normalize_address(depositant),
                normalize_address(beneficiary),
                {'agent_fee': agent_fee},
                {'token': normalize_address(token), 'salt': salt},
                agent_data,
            )

        return escrow_id

    @atomic
    def sign_create_escrow(self, sender: str, agent: str, depositant: str, beneficiary: str,
                           agent_fee: int, token: str, salt: int, signature: str) -> str:
        """Create an escrow relayed by sender with the agent's signature over its id"""
        escrow_id = self.calculate_id(agent, depositant, beneficiary, agent_fee, token, salt)
        signature = self._check_agent_signature(agent, escrow_id, signature)

        self._create(agent, depositant, beneficiary, agent_fee, token, salt, b"")
        self._emit_signed(escrow_id, signature)
        return escrow_id

    def _create(self, agent, depositant, beneficiary, agent_fee, token, salt, agent_data) -> str:
        validate_fee_bps(agent_fee, self.config.max_agent_fee_bps)
        escrow_id = self.calculate_id(agent, depositant, beneficiary, agent_fee, token, salt)
        self._require_new(escrow_id)

        self._escrows[escrow_id] = FungibleEscrow(
            agent=normalize_address(agent),
            depositant=normalize_address(depositant),
            beneficiary=normalize_address(beneficiary),
            agent_fee=agent_fee,
            token=normalize_address(token),
        )

        self.emit(CreateEscrow(
            self.address, escrow_id,
            normalize_address(agent), normalize_address(depositant), normalize_address(beneficiary),
            agent_fee, normalize_address(token), salt, bytes(agent_data),
        ))
        logger.info("Escrow %s created for agent %s", escrow_id, agent)
        return escrow_id

    @atomic
    def deposit(self, sender: str, escrow_id: str, amount: int) -> None:
        """Pull amount of the escrow token from sender into custody"""
        escrow_id = normalize_id(escrow_id)
        require_uint(amount)

        escrow = self._escrows.get(escrow_id)
        if escrow is None:
            raise ExternalCallFailure(f"deposit: call to non-contract, escrow {escrow_id} does not exist")
        if escrow.balance + amount > UINT256_MAX:
            raise ArithmeticOverflow(f"deposit: balance of escrow {escrow_id} would exceed uint256")

        self._escrows[escrow_id] = replace(escrow, balance=escrow.balance + amount)
        self._safe_call(escrow.token, "transfer_from", self.address, normalize_address(sender), self.address, amount)

        self.emit(Deposit(self.address, escrow_id, normalize_address(sender), amount))
        logger.info("Deposit of %d into escrow %s", amount, escrow_id)

    @atomic
    def withdraw_to_beneficiary(self, sender: str, escrow_id: str, amount: int, data: bytes = b"") -> int:
        """Release amount to the beneficiary; allowed to the depositant or agent"""
        return self._withdraw(sender, escrow_id, amount, data, to_beneficiary=True)

    @atomic
    def withdraw_to_depositant(self, sender: str, escrow_id: str, amount: int, data: bytes = b"") -> int:
        """Return amount to the depositant; allowed to the beneficiary or agent"""
        return self._withdraw(sender, escrow_id, amount, data, to_beneficiary=False)

    def _withdraw(self, sender: str, escrow_id: str, amount: int, data: bytes, to_beneficiary: bool) -> int:
        escrow_id = normalize_id(escrow_id)
        sender = normalize_address(sender)
        require_uint(amount)

        escrow = self._escrows.get(escrow_id)
        if escrow is None:
            raise Unauthorized("_withdraw: The sender should be the _approved or the agent")

        if to_beneficiary:
            approved, to = escrow.depositant, escrow.beneficiary
        else:
            approved, to = escrow.beneficiary, escrow.depositant

        if sender not in (approved, escrow.agent):
            self._consult_agent(escrow.agent, "withdraw", sender, escrow_id, data)

        if amount > escrow.balance:
            raise ArithmeticUnderflow(
                f"_withdraw: amount {amount} exceeds escrow balance {escrow.balance}"
            )
        split = split_fee(amount, escrow.agent_fee, self.config.fee_base)

        # Effects before transfers
        self._escrows[escrow_id] = replace(escrow, balance=escrow.balance - amount)

        self._safe_call(escrow.token, "transfer", self.address, escrow.agent, split.to_agent)
        self._safe_call(escrow.token, "transfer", self.address, to, split.to_principal)

        self.emit(Withdraw(self.address, escrow_id, sender, to, split.to_principal, split.to_agent))
        logger.info(
            "Escrow %s released %d to %s and %d to agent",
            escrow_id, split.to_principal, to, split.to_agent,
        )
        return split.to_principal

    @atomic
    def cancel(self, sender: str, escrow_id: str, data: bytes = b"") -> int:
        """Refund the whole balance to the depositant and retire the escrow"""
        escrow_id = normalize_id(escrow_id)
        sender = normalize_address(sender)

        escrow = self._escrows.get(escrow_id)
        if escrow is None:
            raise Unauthorized("cancel: The sender should be the agent")
        if sender != escrow.agent:
            self._consult_agent(escrow.agent, "cancel", sender, escrow_id, data)

        self._retire(escrow_id)
        self._safe_call(escrow.token, "transfer", self.address, escrow.depositant, escrow.balance)

        self.emit(Cancel(self.address, escrow_id, escrow.balance))
        logger.info("Escrow %s canceled, refunded %d", escrow_id, escrow.balance)
        return escrow.balance
