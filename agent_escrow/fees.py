from typing import NamedTuple

from .config import BPS_BASE
from .errors import FeeTooHigh


class FeeSplit(NamedTuple):
    to_agent: int
    to_principal: int


def split_fee(amount: int, fee_bps: int, base: int = BPS_BASE) -> FeeSplit:
    """Split amount into the agent cut (floored) and the remainder"""
    if amount < 0 or fee_bps < 0:
        raise ValueError("Amount and fee must be non-negative")

    to_agent = (amount * fee_bps) // base
    return FeeSplit(to_agent, amount - to_agent)


def validate_fee_bps(fee_bps: int, cap: int) -> None:
    if fee_bps > cap:
        raise FeeTooHigh(f"The agent fee should be lower or equal than {cap}, got {fee_bps}")
