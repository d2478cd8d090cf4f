"""
Agent Escrow - conditional custody of fungible and non-fungible assets
released by an agent or by the counterparties
"""

from .agents import OperatorAgent, PlainAccount, ProgrammableAgent
from .config import EngineConfig
from .fees import FeeSplit, split_fee
from .fungible_escrow import FungibleEscrow, FungibleEscrowEngine
from .ledger import Chain
from .non_fungible_escrow import NonFungibleEscrow, NonFungibleEscrowEngine
from .signatures import AccountKey, SignatureRegistry, recover_signer

__version__ = "0.1.0"
__all__ = [
    "AccountKey",
    "Chain",
    "EngineConfig",
    "FeeSplit",
    "FungibleEscrow",
    "FungibleEscrowEngine",
    "NonFungibleEscrow",
    "NonFungibleEscrowEngine",
    "OperatorAgent",
    "PlainAccount",
    "ProgrammableAgent",
    "SignatureRegistry",
    "recover_signer",
    "split_fee",
]
