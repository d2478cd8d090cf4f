"""
Content-addressed escrow identifiers

An id is the SHA-256 of a domain tag followed by the escrow's parameters
packed as fixed-width words. The engine's own address is always the first
word, so ids never collide across deployments.
"""

import hashlib
import re

from .errors import InvalidAddress, InvalidUint

ZERO_ADDRESS = "0x" + "00" * 20
UINT256_MAX = 2 ** 256 - 1

FUNGIBLE_ID_TAG = b"AGENT_ESCROW_FUNGIBLE_V1"
NON_FUNGIBLE_ID_TAG = b"AGENT_ESCROW_NON_FUNGIBLE_V1"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_ID_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def normalize_address(address: str) -> str:
    """Lowercase a 0x-prefixed 20-byte hex address"""
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        raise InvalidAddress(f"Not a 20-byte hex address: {address!r}")
    return address.lower()


def normalize_id(escrow_id: str) -> str:
    if not isinstance(escrow_id, str) or not _ID_RE.match(escrow_id):
        raise InvalidUint(f"Not a 32-byte hex id: {escrow_id!r}")
    return escrow_id.lower()


def pack_address(address: str) -> bytes:
    return bytes.fromhex(normalize_address(address)[2:])


def pack_uint256(value: int) -> bytes:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidUint(f"Not an integer: {value!r}")
    if not (0 <= value <= UINT256_MAX):
        raise InvalidUint(f"Out of uint256 range: {value}")
    return value.to_bytes(32, 'big')


def derive_id(tag: bytes, *words: bytes) -> str:
    hasher = hashlib.sha256()
    hasher.update(tag)
    for word in words:
        hasher.update(word)
    return "0x" + hasher.hexdigest()


def fungible_escrow_id(engine: str, agent: str, depositant: str, beneficiary: str,
                       agent_fee: int, token: str, salt: int) -> str:
    """Id of a fungible escrow, scoped to the engine address"""
    return derive_id(
        FUNGIBLE_ID_TAG,
        pack_address(engine),
        pack_address(agent),
        pack_address(depositant),
        pack_address(beneficiary),
        pack_uint256(agent_fee),
        pack_address(token),
        pack_uint256(salt),
    )


def non_fungible_escrow_id(engine: str, agent: str, depositant: str, beneficiary: str,
                           token721: str, token_id: int, token20: str,
                           agent_fixed_fee: int, salt: int) -> str:
    """Id of a non-fungible escrow, scoped to the engine address"""
    return derive_id(
        NON_FUNGIBLE_ID_TAG,
        pack_address(engine),
        pack_address(agent),
        pack_address(depositant),
        pack_address(beneficiary),
        pack_address(token721),
        pack_uint256(token_id),
        pack_address(token20),
        pack_uint256(agent_fixed_fee),
        pack_uint256(salt),
    )


def require_uint(value: int) -> int:
    """Validate value as an unsigned 256-bit integer"""
    pack_uint256(value)
    return value
