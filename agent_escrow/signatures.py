"""
Off-chain agent consent: secp256k1 keys, signer recovery and revocation
"""

import hashlib
import re
from typing import Dict, Set, Tuple

from ecdsa import SigningKey, SECP256k1, VerifyingKey
from ecdsa.ecdsa import InvalidPointError
from ecdsa.errors import MalformedPointError
from ecdsa.numbertheory import SquareRootError
from ecdsa.util import sigdecode_string, sigencode_string_canonize

from .config import SIGNED_MESSAGE_PREFIX
from .errors import InvalidSignature
from .ids import normalize_address, normalize_id

SIGNATURE_LENGTH = 65
_HALF_ORDER = SECP256k1.order // 2
_HEX_RE = re.compile(r"^0x([0-9a-fA-F]{2})*$")


def address_from_verifying_key(vk: VerifyingKey) -> str:
    """Last 20 bytes of SHA256 over the raw 64-byte public key"""
    return "0x" + hashlib.sha256(vk.to_string()).digest()[-20:].hex()


def message_digest(payload: bytes, prefix: bytes = SIGNED_MESSAGE_PREFIX) -> bytes:
    return hashlib.sha256(prefix + payload).digest()


def normalize_signature(signature: str) -> str:
    if not isinstance(signature, str) or not _HEX_RE.match(signature):
        raise InvalidSignature(f"Signature must be 0x-prefixed hex, got {signature!r}")
    return signature.lower()


class AccountKey:
    """Account key management utilities"""

    def __init__(self, private_key: bytes = None):
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()
        self.address = address_from_verifying_key(self.public_key)

    def sign_payload(self, payload: bytes, prefix: bytes = SIGNED_MESSAGE_PREFIX) -> str:
        """Sign prefixed payload, return r || s || v in hex"""
        digest = message_digest(payload, prefix)
        rs = self.private_key.sign_digest_deterministic(
            digest,
            hashfunc=hashlib.sha256,
            sigencode=sigencode_string_canonize,
        )

        # v selects our key among the recovery candidates
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            rs, digest, SECP256k1, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )
        own = self.public_key.to_string()
        v = next(i for i, vk in enumerate(candidates) if vk.to_string() == own)

        return "0x" + (rs + bytes([v])).hex()

    def sign_escrow_id(self, escrow_id: str, prefix: bytes = SIGNED_MESSAGE_PREFIX) -> str:
        """Sign an escrow id to consent to its creation"""
        return self.sign_payload(bytes.fromhex(normalize_id(escrow_id)[2:]), prefix)

    def private_key_hex(self) -> str:
        return self.private_key.to_string().hex()

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate new key and return (private_key_hex, address)"""
        key = AccountKey()
        return key.private_key_hex(), key.address


def recover_payload_signer(payload: bytes, signature: str,
                           prefix: bytes = SIGNED_MESSAGE_PREFIX) -> str:
    """Recover the address that signed payload"""
    raw = bytes.fromhex(normalize_signature(signature)[2:])
    if len(raw) != SIGNATURE_LENGTH:
        raise InvalidSignature(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")

    rs, v = raw[:64], raw[64]
    r = int.from_bytes(rs[:32], 'big')
    s = int.from_bytes(rs[32:], 'big')
    if not (0 < r < SECP256k1.order) or not (0 < s <= _HALF_ORDER):
        # high-s twins would slip past the revocation set
        raise InvalidSignature("Signature scalars out of range")
    if v not in (0, 1):
        raise InvalidSignature(f"Invalid recovery id {v}")

    try:
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            rs, message_digest(payload, prefix), SECP256k1,
            hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )
    except (SquareRootError, InvalidPointError, MalformedPointError) as exc:
        raise InvalidSignature("Signature does not recover to a public key") from exc

    return address_from_verifying_key(candidates[v])


def recover_signer(escrow_id: str, signature: str, prefix: bytes = SIGNED_MESSAGE_PREFIX) -> str:
    """Recover the address that signed an escrow id"""
    return recover_payload_signer(bytes.fromhex(normalize_id(escrow_id)[2:]), signature, prefix)


class SignatureRegistry:
    """Per-signer set of revoked signatures"""

    def __init__(self):
        self._canceled: Dict[str, Set[str]] = {}

    def cancel(self, signer: str, signature: str) -> bool:
        """Revoke signature for signer; False if it was already revoked"""
        signer = normalize_address(signer)
        signature = normalize_signature(signature)

        revoked = self._canceled.setdefault(signer, set())
        if signature in revoked:
            return False
        revoked.add(signature)
        return True

    def is_canceled(self, signer: str, signature: str) -> bool:
        return normalize_signature(signature) in self._canceled.get(normalize_address(signer), set())
