import os
from dataclasses import dataclass
from typing import Mapping, Optional

BPS_BASE = 10_000
MAX_AGENT_FEE_BPS = 1000  # 10%
SIGNED_MESSAGE_PREFIX = b"\x19Escrow Signed Message:\n32"


@dataclass(frozen=True)
class EngineConfig:
    """Per-engine economic constants"""

    max_agent_fee_bps: int = MAX_AGENT_FEE_BPS
    fee_base: int = BPS_BASE
    signed_message_prefix: bytes = SIGNED_MESSAGE_PREFIX

    def __post_init__(self):
        if self.fee_base <= 0:
            raise ValueError("Fee base must be positive")
        if not (0 <= self.max_agent_fee_bps <= self.fee_base):
            raise ValueError(
                f"Max agent fee must be between 0 and {self.fee_base}, got {self.max_agent_fee_bps}"
            )

    @classmethod
    def standard(cls) -> 'EngineConfig':
        """Fee cap of 1000 bps over a 10000 base"""
        return cls()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EngineConfig':
        """Build config from ESCROW_* environment variables"""
        env = os.environ if environ is None else environ
        return cls(
            max_agent_fee_bps=int(env.get("ESCROW_MAX_AGENT_FEE_BPS", MAX_AGENT_FEE_BPS)),
            fee_base=int(env.get("ESCROW_FEE_BASE", BPS_BASE)),
        )
