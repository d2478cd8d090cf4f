#!/usr/bin/env python3
"""
Complete demo of the Agent Escrow system
"""

from agent_escrow.agents import OperatorAgent
from agent_escrow.assets import FungibleToken, NonFungibleToken
from agent_escrow.errors import CapabilityRejected, SignatureCanceled
from agent_escrow.fungible_escrow import FungibleEscrowEngine
from agent_escrow.ledger import Chain
from agent_escrow.non_fungible_escrow import NonFungibleEscrowEngine
from agent_escrow.signatures import AccountKey

WEI = 10 ** 18


def main():
    print("=" * 60)
    print("🏦 AGENT ESCROW - COMPLETE DEMO")
    print("=" * 60)
    print()

    # Step 1: Setup
    print("🔧 STEP 1: Setting up participants and contracts")
    print("-" * 40)

    participants = {}
    for name in ("Agent", "Alice", "Bob", "Relayer"):
        participants[name] = AccountKey()
        print(f"✅ {name}: {participants[name].address}")

    agent = participants["Agent"].address
    alice = participants["Alice"].address
    bob = participants["Bob"].address
    relayer = participants["Relayer"].address

    chain = Chain()
    usd = chain.deploy(FungibleToken("Demo Dollar", "DUSD"))
    art = chain.deploy(NonFungibleToken("Demo Art", "DART"))
    escrow = chain.deploy(FungibleEscrowEngine())
    nft_escrow = chain.deploy(NonFungibleEscrowEngine())

    usd.mint(alice, 10 * WEI)
    print(f"✅ Fungible engine: {escrow.address}")
    print(f"✅ Non-fungible engine: {nft_escrow.address}")
    print(f"✅ Alice holds {usd.balance_of(alice) // WEI} {usd.metadata.symbol}")
    print()

    # Step 2: Direct creation and deposit
    print("🏗️  STEP 2: Agent creates an escrow with a 5% fee")
    print("-" * 40)

    escrow_id = escrow.create_escrow(agent, agent, alice, bob, 500, usd.address, 1)
    usd.approve(alice, escrow.address, WEI)
    escrow.deposit(alice, escrow_id, WEI)

    print(f"✅ Escrow ID: {escrow_id}")
    print(f"✅ Balance: {escrow.get_escrow(escrow_id).balance:,}")
    print()

    # Step 3: Partial release
    print("💰 STEP 3: Alice releases half to Bob")
    print("-" * 40)

    to_bob = escrow.withdraw_to_beneficiary(alice, escrow_id, WEI // 2)
    print(f"✅ Bob received {to_bob:,}")
    print(f"✅ Agent fee {usd.balance_of(agent):,}")
    print(f"✅ Remaining {escrow.get_escrow(escrow_id).balance:,}")

    refunded = escrow.cancel(agent, escrow_id)
    print(f"✅ Agent canceled, {refunded:,} refunded to Alice")
    print()

    # Step 4: Signed creation
    print("✍️  STEP 4: Relayer creates an escrow with the agent's signature")
    print("-" * 40)

    signed_id = escrow.calculate_id(agent, alice, bob, 100, usd.address, 2)
    signature = participants["Agent"].sign_escrow_id(signed_id)
    escrow.sign_create_escrow(relayer, agent, alice, bob, 100, usd.address, 2, signature)
    print(f"✅ Signed escrow created: {signed_id}")

    revoked_id = escrow.calculate_id(agent, alice, bob, 100, usd.address, 3)
    revoked = participants["Agent"].sign_escrow_id(revoked_id)
    escrow.cancel_signature(agent, revoked)
    try:
        escrow.sign_create_escrow(relayer, agent, alice, bob, 100, usd.address, 3, revoked)
    except SignatureCanceled as e:
        print(f"❌ Revoked signature rejected: {e}")
    print()

    # Step 5: Programmable agent
    print("🤖 STEP 5: Escrow governed by an operator agent")
    print("-" * 40)

    operator_agent = chain.deploy(OperatorAgent([relayer]))
    policy_id = escrow.create_escrow(relayer, operator_agent.address, alice, bob, 0, usd.address, 4)
    print(f"✅ Operator created escrow {policy_id}")

    try:
        escrow.cancel(bob, policy_id)
    except CapabilityRejected as e:
        print(f"❌ Bob cannot cancel: {e}")

    escrow.cancel(relayer, policy_id)
    print("✅ Operator canceled the escrow")
    print()

    # Step 6: Non-fungible escrow
    print("🖼️  STEP 6: Non-fungible escrow with a fixed fee")
    print("-" * 40)

    art.mint(alice, 7)
    nft_id = nft_escrow.create_escrow(agent, alice, bob, art.address, 7, usd.address, WEI // 100, 1)
    art.approve(alice, nft_escrow.address, 7)
    usd.approve(alice, nft_escrow.address, WEI // 100)
    nft_escrow.deposit(alice, nft_id)
    print(f"✅ Token 7 held by engine: {art.owner_of(7) == nft_escrow.address}")

    nft_escrow.withdraw_to_beneficiary(alice, nft_id)
    print(f"✅ Token 7 now owned by Bob: {art.owner_of(7) == bob}")
    print()

    print("📜 Events emitted:")
    for event in chain.events:
        print(f"   {event.name}")

    print()
    print("✅ Demo complete!")


if __name__ == "__main__":
    main()
