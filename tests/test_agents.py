import unittest

from agent_escrow.agents import OperatorAgent, ProgrammableAgent
from agent_escrow.assets import FungibleToken
from agent_escrow.errors import CapabilityRejected
from agent_escrow.fungible_escrow import FungibleEscrowEngine
from agent_escrow.ledger import Chain

from tests.doubles import address

OPERATOR = address(1)
DEPOSITANT = address(2)
BENEFICIARY = address(3)
STRANGER = address(4)


class TestOperatorAgent(unittest.TestCase):

    def setUp(self):
        self.chain = Chain()
        self.token = self.chain.deploy(FungibleToken("Test Token", "TST"))
        self.engine = self.chain.deploy(FungibleEscrowEngine())
        self.agent = self.chain.deploy(OperatorAgent([OPERATOR]))

    def create(self, sender=OPERATOR, salt=1):
        return self.engine.create_escrow(
            sender, self.agent.address, DEPOSITANT, BENEFICIARY, 100, self.token.address, salt
        )

    def test_is_programmable(self):
        self.assertIsInstance(self.agent, ProgrammableAgent)
        with self.assertRaises(TypeError):
            ProgrammableAgent()

    def test_operator_creates(self):
        escrow_id = self.create()
        self.assertEqual(self.engine.get_escrow(escrow_id).agent, self.agent.address)

    def test_stranger_rejected(self):
        with self.assertRaises(CapabilityRejected):
            self.create(sender=STRANGER)

    def test_operator_management(self):
        """Test operator changes take effect on the next call"""
        self.agent.add_operator(STRANGER)
        escrow_id = self.create(sender=STRANGER)

        self.agent.remove_operator(OPERATOR)
        self.assertFalse(self.agent.is_operator(OPERATOR))
        with self.assertRaises(CapabilityRejected):
            self.engine.cancel(OPERATOR, escrow_id)

        self.engine.cancel(STRANGER, escrow_id)
        self.assertFalse(self.engine.escrow_exists(escrow_id))

    def test_operator_releases(self):
        escrow_id = self.create()
        self.token.mint(DEPOSITANT, 10_000)
        self.token.approve(DEPOSITANT, self.engine.address, 10_000)
        self.engine.deposit(DEPOSITANT, escrow_id, 10_000)

        self.assertEqual(self.engine.withdraw_to_beneficiary(OPERATOR, escrow_id, 10_000), 9_900)
        self.assertEqual(self.token.balance_of(self.agent.address), 100)

        with self.assertRaises(CapabilityRejected):
            self.engine.withdraw_to_depositant(STRANGER, escrow_id, 0)


if __name__ == '__main__':
    unittest.main()
