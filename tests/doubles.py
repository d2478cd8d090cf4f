"""
Test doubles shared by the engine test suites
"""

from agent_escrow.agents import ProgrammableAgent
from agent_escrow.assets import FungibleToken

WEI = 10 ** 18
APPROVE = b"\x01"


def address(n: int) -> str:
    """Deterministic plain account address"""
    return "0x" + f"{n:040x}"


class FlagAgent(ProgrammableAgent):
    """Approves any action whose caller data is exactly 0x01"""

    STATE_FIELDS = ("calls",)

    def __init__(self):
        self.calls = []

    def approve_create(self, sender, depositant, beneficiary, fee_params, asset_params, data):
        self.calls.append(("create", sender))
        return data == APPROVE

    def approve_withdraw(self, sender, escrow_id, data):
        self.calls.append(("withdraw", sender))
        return data == APPROVE

    def approve_cancel(self, sender, escrow_id, data):
        self.calls.append(("cancel", sender))
        return data == APPROVE


class ExplodingAgent(ProgrammableAgent):
    """Fails while deciding"""

    def approve_create(self, sender, depositant, beneficiary, fee_params, asset_params, data):
        raise RuntimeError("policy unavailable")

    def approve_withdraw(self, sender, escrow_id, data):
        raise RuntimeError("policy unavailable")

    def approve_cancel(self, sender, escrow_id, data):
        raise RuntimeError("policy unavailable")


class ReentrantAgent(ProgrammableAgent):
    """Tries to drain the escrow from inside its withdraw approval"""

    def __init__(self):
        self.engine = None
        self.attacker = None

    def approve_create(self, sender, depositant, beneficiary, fee_params, asset_params, data):
        return True

    def approve_withdraw(self, sender, escrow_id, data):
        self.engine.withdraw_to_beneficiary(self.address, escrow_id, 1)
        return True

    def approve_cancel(self, sender, escrow_id, data):
        return True


class BlockingToken(FungibleToken):
    """Refuses transfers to one address"""

    def __init__(self, name, symbol, blocked):
        super().__init__(name, symbol)
        self.blocked = blocked

    def transfer(self, sender, to, amount):
        if to.lower() == self.blocked.lower():
            return False
        return super().transfer(sender, to, amount)


class ReentrantToken(FungibleToken):
    """Calls back into the engine while paying out"""

    def __init__(self, name, symbol):
        super().__init__(name, symbol)
        self.engine = None
        self.escrow_id = None
        self.caller = None

    def transfer(self, sender, to, amount):
        if self.engine is not None:
            self.engine.cancel(self.caller, self.escrow_id)
        return super().transfer(sender, to, amount)


class DeployingAgent(ProgrammableAgent):
    """Deploys a token while deciding, then rejects"""

    def __init__(self):
        self.deployed = None

    def approve_create(self, sender, depositant, beneficiary, fee_params, asset_params, data):
        return False

    def approve_withdraw(self, sender, escrow_id, data):
        self.deployed = self.chain.deploy(FungibleToken("Side", "SIDE"))
        return False

    def approve_cancel(self, sender, escrow_id, data):
        return False
