"""
Shared machinery of the escrow engines: record storage, id retirement,
signature-based consent, the agent capability gate and checked asset calls
"""

import logging
from typing import Any, Dict, Optional, Set

from .agents import ProgrammableAgent
from .config import EngineConfig
from .errors import (
    CapabilityRejected,
    EscrowExists,
    EscrowRetired,
    ExternalCallFailure,
    InvalidSignature,
    SignatureCanceled,
    Unauthorized,
)
from .events import CancelSignature, SignCreateEscrow
from .ids import normalize_address, normalize_id
from .ledger import Contract, atomic
from .signatures import SignatureRegistry, normalize_signature, recover_signer

logger = logging.getLogger(__name__)


class EscrowEngine(Contract):
    """Base class for the fungible and non-fungible escrow ledgers"""

    STATE_FIELDS = ("_escrows", "_retired", "_signatures")

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig.standard()
        self._escrows: Dict[str, Any] = {}
        self._retired: Set[str] = set()
        self._signatures = SignatureRegistry()
        self._entered = False

    # --- views ---

    def get_escrow(self, escrow_id: str):
        """Return the escrow record, or None if absent"""
        return self._escrows.get(normalize_id(escrow_id))

    def escrow_exists(self, escrow_id: str) -> bool:
        return normalize_id(escrow_id) in self._escrows

    def is_retired(self, escrow_id: str) -> bool:
        return normalize_id(escrow_id) in self._retired

    def is_signature_canceled(self, signer: str, signature: str) -> bool:
        return self._signatures.is_canceled(signer, signature)

    # --- signatures ---

    @atomic
    def cancel_signature(self, sender: str, signature: str) -> bool:
        """Revoke one of sender's own creation signatures"""
        signature = normalize_signature(signature)
        newly_canceled = self._signatures.cancel(sender, signature)

        self.emit(CancelSignature(self.address, normalize_address(sender), signature))
        logger.info("Signature canceled by %s", sender)
        return newly_canceled

    def _check_agent_signature(self, agent: str, escrow_id: str, signature: str) -> str:
        signature = normalize_signature(signature)
        signer = recover_signer(escrow_id, signature, self.config.signed_message_prefix)

        if signer != normalize_address(agent):
            logger.warning("Signature for %s recovered %s, expected agent %s", escrow_id, signer, agent)
            raise InvalidSignature("signCreateEscrow: Invalid agent signature")
        if self._signatures.is_canceled(agent, signature):
            logger.warning("Canceled signature presented for %s", escrow_id)
            raise SignatureCanceled("signCreateEscrow: The signature was canceled")

        return signature

    def _emit_signed(self, escrow_id: str, signature: str) -> None:
        self.emit(SignCreateEscrow(self.address, escrow_id, signature))

    # --- records ---

    def _require_new(self, escrow_id: str) -> None:
        if escrow_id in self._escrows:
            raise EscrowExists(f"createEscrow: The escrow {escrow_id} exists")
        if escrow_id in self._retired:
            raise EscrowRetired(f"createEscrow: The escrow {escrow_id} was canceled")

    def _retire(self, escrow_id: str):
        """Remove a record for good and return it"""
        record = self._escrows.pop(escrow_id)
        self._retired.add(escrow_id)
        return record

    # --- agent capability ---

    def _consult_agent(self, agent: str, action: str, sender: str, *args) -> None:
        """Ask a programmable agent to approve an action by a third party"""
        account = self.chain.account(agent)
        if not isinstance(account, ProgrammableAgent):
            logger.warning("%s by %s refused: sender is not authorized", action, sender)
            raise Unauthorized(f"{action}: The sender should be authorized by the agent")

        callback = getattr(account, f"approve_{action}")
        try:
            approved = callback(normalize_address(sender), *args)
        except Exception as exc:
            raise CapabilityRejected(f"{action}: The agent failed to approve the {action}") from exc

        if approved is not True:
            logger.warning("Agent %s rejected %s by %s", agent, action, sender)
            raise CapabilityRejected(f"{action}: The agent rejects the {action}")

    # --- asset calls ---

    def _safe_call(self, token: str, method: str, *args) -> None:
        contract = self.chain.contract_at(token)
        call = getattr(contract, method, None)
        if call is None:
            raise ExternalCallFailure(f"Contract {token} has no {method}")
        if call(*args) is not True:
            raise ExternalCallFailure(f"{method} on {token} failed")
