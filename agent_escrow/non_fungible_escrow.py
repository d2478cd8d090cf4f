"""
Escrow of a single non-fungible token plus a fixed fungible agent fee

Transfers are all-or-nothing: the token and the fee move together on
deposit, release and cancel.
"""

import logging
from dataclasses import dataclass, asdict, replace

from .errors import AlreadyFunded, NotFunded, Unauthorized
from .engine import EscrowEngine
from .events import CreateNonFungibleEscrow, Deposit, NonFungibleCancel, NonFungibleWithdraw
from .ids import non_fungible_escrow_id, normalize_address, normalize_id
from .ledger import atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NonFungibleEscrow:
    """Custody record of a non-fungible escrow"""
    agent: str
    depositant: str
    beneficiary: str
    token721: str
    token_id: int
    token20: str
    agent_fixed_fee: int
    funded: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


class NonFungibleEscrowEngine(EscrowEngine):
    """Holds one non-fungible token and its agent fee per escrow"""

    def calculate_id(self, agent: str, depositant: str, beneficiary: str, token721: str,
                     token_id: int, token20: str, agent_fixed_fee: int, salt: int) -> str:
        """Derive the id of an escrow on this engine"""
        return non_fungible_escrow_id(
            self.address, agent, depositant, beneficiary,
            token721, token_id, token20, agent_fixed_fee, salt,
        )

    @atomic
    def create_escrow(self, sender: str, depositant: str, beneficiary: str, token721: str,
                      token_id: int, token20: str, agent_fixed_fee: int, salt: int) -> str:
        """Create an escrow with sender as its agent"""
        return self._create(sender, depositant, beneficiary, token721, token_id, token20, agent_fixed_fee, salt)

    @atomic
    def sign_create_escrow(self, sender: str, agent: str, depositant: str, beneficiary: str,
                           token721: str, token_id: int, token20: str, agent_fixed_fee: int,
                           salt: int, signature: str) -> str:
        """Create an escrow relayed by sender with the agent's signature over its id"""
        escrow_id = self.calculate_id(
            agent, depositant, beneficiary, token721, token_id, token20, agent_fixed_fee, salt
        )
        signature = self._check_agent_signature(agent, escrow_id, signature)

        self._create(agent, depositant, beneficiary, token721, token_id, token20, agent_fixed_fee, salt)
        self._emit_signed(escrow_id, signature)
        return escrow_id

    def _create(self, agent, depositant, beneficiary, token721, token_id, token20, agent_fixed_fee, salt) -> str:
        escrow_id = self.calculate_id(
            agent, depositant, beneficiary, token721, token_id, token20, agent_fixed_fee, salt
        )
        self._require_new(escrow_id)

        escrow = NonFungibleEscrow(
            agent=normalize_address(agent),
            depositant=normalize_address(depositant),
            beneficiary=normalize_address(beneficiary),
            token721=normalize_address(token721),
            token_id=token_id,
            token20=normalize_address(token20),
            agent_fixed_fee=agent_fixed_fee,
        )
        self._escrows[escrow_id] = escrow

        self.emit(CreateNonFungibleEscrow(
            self.address, escrow_id, escrow.agent, escrow.depositant, escrow.beneficiary,
            escrow.token721, token_id, escrow.token20, agent_fixed_fee, salt,
        ))
        logger.info("Non-fungible escrow %s created for agent %s", escrow_id, escrow.agent)
        return escrow_id

    @atomic
    def deposit(self, sender: str, escrow_id: str) -> None:
        """Pull the token and the agent fee from the depositant"""
        escrow_id = normalize_id(escrow_id)
        sender = normalize_address(sender)

        escrow = self._escrows.get(escrow_id)
        if escrow is None or sender != escrow.depositant:
            raise Unauthorized("deposit: The sender should be the depositant")
        if escrow.funded:
            raise AlreadyFunded(f"deposit: The escrow {escrow_id} already holds its token")

        self._escrows[escrow_id] = replace(escrow, funded=True)

        self._safe_call(escrow.token20, "transfer_from", self.address, sender, self.address, escrow.agent_fixed_fee)
        self._safe_call(escrow.token721, "transfer_from", self.address, sender, self.address, escrow.token_id)

        self.emit(Deposit(self.address, escrow_id, sender, escrow.agent_fixed_fee))
        logger.info("Token %d deposited into escrow %s", escrow.token_id, escrow_id)

    @atomic
    def withdraw_to_beneficiary(self, sender: str, escrow_id: str, data: bytes = b"") -> None:
        """Release the token to the beneficiary; allowed to the depositant or agent"""
        self._withdraw(sender, escrow_id, data, to_beneficiary=True)

    @atomic
    def withdraw_to_depositant(self, sender: str, escrow_id: str, data: bytes = b"") -> None:
        """Return the token to the depositant; allowed to the beneficiary or agent"""
        self._withdraw(sender, escrow_id, data, to_beneficiary=False)

    def _withdraw(self, sender: str, escrow_id: str, data: bytes, to_beneficiary: bool) -> None:
        escrow_id = normalize_id(escrow_id)
        sender = normalize_address(sender)

        escrow = self._escrows.get(escrow_id)
        if escrow is None:
            raise Unauthorized("_withdraw: The sender should be the _approved or the agent")

        if to_beneficiary:
            approved, to = escrow.depositant, escrow.beneficiary
        else:
            approved, to = escrow.beneficiary, escrow.depositant

        if sender not in (approved, escrow.agent):
            self._consult_agent(escrow.agent, "withdraw", sender, escrow_id, data)
        if not escrow.funded:
            raise NotFunded(f"_withdraw: The escrow {escrow_id} holds no token")

        # Effects before transfers
        self._escrows[escrow_id] = replace(escrow, funded=False)

        self._safe_call(escrow.token721, "transfer_from", self.address, self.address, to, escrow.token_id)
        self._safe_call(escrow.token20, "transfer", self.address, escrow.agent, escrow.agent_fixed_fee)

        self.emit(NonFungibleWithdraw(
            self.address, escrow_id, sender, to, escrow.token_id, escrow.agent_fixed_fee
        ))
        logger.info("Escrow %s released token %d to %s", escrow_id, escrow.token_id, to)

    @atomic
    def cancel(self, sender: str, escrow_id: str, data: bytes = b"") -> bool:
        """Return token and fee to the depositant and retire the escrow"""
        escrow_id = normalize_id(escrow_id)
        sender = normalize_address(sender)

        escrow = self._escrows.get(escrow_id)
        if escrow is None:
            raise Unauthorized("cancel: The sender should be the agent")
        if sender != escrow.agent:
            self._consult_agent(escrow.agent, "cancel", sender, escrow_id, data)

        self._retire(escrow_id)

        refunded = 0
        if escrow.funded:
            self._safe_call(
                escrow.token721, "transfer_from", self.address, self.address, escrow.depositant, escrow.token_id
            )
            self._safe_call(escrow.token20, "transfer", self.address, escrow.depositant, escrow.agent_fixed_fee)
            refunded = escrow.agent_fixed_fee

        self.emit(NonFungibleCancel(self.address, escrow_id, refunded, escrow.funded))
        logger.info("Non-fungible escrow %s canceled", escrow_id)
        return escrow.funded
