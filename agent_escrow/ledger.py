"""
In-process execution environment for escrow engines and asset contracts

A Chain owns every deployed contract. A transaction snapshots all of them
and rolls everything back if the call fails, so each engine entry point is
all-or-nothing.
"""

import copy
import functools
import hashlib
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple, Union

from .errors import ExternalCallFailure, ReentrantCall
from .events import EscrowEvent, EventLog
from .ids import normalize_address

logger = logging.getLogger(__name__)


class Contract:
    """Anything deployed on a Chain; subclasses list their mutable state"""

    STATE_FIELDS: Tuple[str, ...] = ()

    address: str = None
    chain: 'Chain' = None

    def snapshot(self) -> dict:
        return {name: copy.deepcopy(getattr(self, name)) for name in self.STATE_FIELDS}

    def restore(self, state: dict) -> None:
        for name, value in state.items():
            setattr(self, name, value)

    def emit(self, event: EscrowEvent) -> None:
        self.chain.events.emit(event)


class Chain:
    """Registry of deployed contracts plus the shared event log"""

    def __init__(self, name: str = "local"):
        self.name = name
        self.events = EventLog()
        self._contracts: Dict[str, Contract] = {}
        self._deploy_nonce = 0
        self._tx_depth = 0

    def deploy(self, contract: Contract) -> Contract:
        """Assign an address to contract and register it"""
        self._deploy_nonce += 1
        digest = hashlib.sha256(
            f"{self.name}:deploy:{self._deploy_nonce}".encode()
        ).digest()

        contract.address = "0x" + digest[-20:].hex()
        contract.chain = self
        self._contracts[contract.address] = contract

        logger.debug("Deployed %s at %s", type(contract).__name__, contract.address)
        return contract

    def is_contract(self, address: str) -> bool:
        return normalize_address(address) in self._contracts

    def contract_at(self, address: str) -> Contract:
        """Resolve a call target, failing for plain accounts"""
        contract = self._contracts.get(normalize_address(address))
        if contract is None:
            raise ExternalCallFailure(f"Call to non-contract {address}")
        return contract

    def account(self, address: str) -> Union['PlainAccount', 'ProgrammableAgent']:
        """Classify address as a programmable agent or a plain account"""
        from .agents import PlainAccount, ProgrammableAgent

        contract = self._contracts.get(normalize_address(address))
        if isinstance(contract, ProgrammableAgent):
            return contract
        return PlainAccount(normalize_address(address))

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run a block atomically; nested blocks join the outer one"""
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield
            finally:
                self._tx_depth -= 1
            return

        registry = dict(self._contracts)
        deploy_nonce = self._deploy_nonce
        states = [c.snapshot() for c in registry.values()]
        event_count = len(self.events)

        self._tx_depth = 1
        try:
            yield
        except Exception:
            for contract, state in zip(registry.values(), states):
                contract.restore(state)
            self._contracts = registry
            self._deploy_nonce = deploy_nonce
            self.events.truncate(event_count)
            raise
        finally:
            self._tx_depth = 0


def atomic(method):
    """Guard an engine entry point against reentry and partial commits"""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._entered:
            raise ReentrantCall(f"{type(self).__name__}.{method.__name__} re-entered")

        self._entered = True
        try:
            with self.chain.transaction():
                return method(self, *args, **kwargs)
        finally:
            self._entered = False

    return wrapper
