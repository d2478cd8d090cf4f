import hashlib
import unittest

from agent_escrow.errors import InvalidAddress, InvalidUint
from agent_escrow.ids import (
    FUNGIBLE_ID_TAG,
    UINT256_MAX,
    ZERO_ADDRESS,
    fungible_escrow_id,
    non_fungible_escrow_id,
    normalize_address,
    normalize_id,
    pack_address,
    pack_uint256,
    require_uint,
)

from tests.doubles import address

ENGINE = address(100)
AGENT = address(1)
DEPOSITANT = address(2)
BENEFICIARY = address(3)
TOKEN = address(4)


class TestIdDerivation(unittest.TestCase):

    def test_fungible_id_layout(self):
        """Test the id is SHA-256 over the tag and packed words"""
        expected = hashlib.sha256(
            FUNGIBLE_ID_TAG
            + bytes.fromhex(ENGINE[2:])
            + bytes.fromhex(AGENT[2:])
            + bytes.fromhex(DEPOSITANT[2:])
            + bytes.fromhex(BENEFICIARY[2:])
            + (500).to_bytes(32, 'big')
            + bytes.fromhex(TOKEN[2:])
            + (7).to_bytes(32, 'big')
        ).hexdigest()

        self.assertEqual(
            fungible_escrow_id(ENGINE, AGENT, DEPOSITANT, BENEFICIARY, 500, TOKEN, 7),
            "0x" + expected,
        )

    def test_deterministic_and_case_insensitive(self):
        first = fungible_escrow_id(ENGINE, AGENT, DEPOSITANT, BENEFICIARY, 500, TOKEN, 7)
        second = fungible_escrow_id(ENGINE.upper().replace("0X", "0x"), AGENT, DEPOSITANT, BENEFICIARY, 500, TOKEN, 7)
        self.assertEqual(first, second)
        self.assertEqual(len(first), 66)

    def test_every_field_changes_the_id(self):
        base = (ENGINE, AGENT, DEPOSITANT, BENEFICIARY, 500, TOKEN, 7)
        variants = [
            (address(101),) + base[1:],
            base[:1] + (address(9),) + base[2:],
            base[:2] + (address(9),) + base[3:],
            base[:3] + (address(9),) + base[4:],
            base[:4] + (501,) + base[5:],
            base[:5] + (address(9),) + base[6:],
            base[:6] + (8,),
        ]
        ids = {fungible_escrow_id(*v) for v in variants}
        ids.add(fungible_escrow_id(*base))
        self.assertEqual(len(ids), len(variants) + 1)

    def test_variants_use_separate_domains(self):
        """Test a non-fungible id never equals a fungible one"""
        nft = non_fungible_escrow_id(ENGINE, AGENT, DEPOSITANT, BENEFICIARY, TOKEN, 0, TOKEN, 0, 0)
        ft = fungible_escrow_id(ENGINE, AGENT, DEPOSITANT, BENEFICIARY, 0, TOKEN, 0)
        self.assertNotEqual(nft, ft)

    def test_salt_bounds(self):
        fungible_escrow_id(ENGINE, AGENT, DEPOSITANT, BENEFICIARY, 0, TOKEN, UINT256_MAX)
        with self.assertRaises(InvalidUint):
            fungible_escrow_id(ENGINE, AGENT, DEPOSITANT, BENEFICIARY, 0, TOKEN, UINT256_MAX + 1)


class TestPacking(unittest.TestCase):

    def test_pack_address(self):
        self.assertEqual(pack_address(ZERO_ADDRESS), b"\x00" * 20)
        self.assertEqual(len(pack_address(AGENT)), 20)

    def test_invalid_addresses(self):
        for bad in ("0x1234", "1" * 40, "0x" + "g" * 40, None, 5):
            with self.assertRaises(InvalidAddress):
                normalize_address(bad)

    def test_pack_uint256(self):
        self.assertEqual(pack_uint256(1), b"\x00" * 31 + b"\x01")
        for bad in (-1, UINT256_MAX + 1, True, 1.5, "1"):
            with self.assertRaises(InvalidUint):
                pack_uint256(bad)

    def test_require_uint(self):
        self.assertEqual(require_uint(0), 0)
        with self.assertRaises(InvalidUint):
            require_uint(-5)

    def test_normalize_id(self):
        self.assertEqual(normalize_id("0x" + "AB" * 32), "0x" + "ab" * 32)
        with self.assertRaises(InvalidUint):
            normalize_id("0x" + "ab" * 31)


if __name__ == '__main__':
    unittest.main()
