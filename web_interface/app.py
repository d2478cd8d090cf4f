#!/usr/bin/env python3
"""
Sandbox HTTP API for Agent Escrow
"""

import os
import sys

from flask import Flask, request, jsonify

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from agent_escrow.assets import FungibleToken
from agent_escrow.config import EngineConfig
from agent_escrow.errors import (
    AuthorizationError,
    CapabilityRejected,
    EscrowArithmeticError,
    EscrowError,
    ExternalCallFailure,
    ValidationError,
)
from agent_escrow.fungible_escrow import FungibleEscrowEngine
from agent_escrow.ledger import Chain
from agent_escrow.signatures import AccountKey

ERROR_STATUS = [
    (ValidationError, 400),
    (AuthorizationError, 403),
    (CapabilityRejected, 403),
    (EscrowArithmeticError, 409),
    (ExternalCallFailure, 502),
]


def _hex_bytes(value) -> bytes:
    value = value or ""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def create_app(chain: Chain = None, config: EngineConfig = None) -> Flask:
    """Build the API around one chain holding a fungible escrow engine"""
    app = Flask(__name__)
    app.secret_key = os.environ.get("ESCROW_SECRET_KEY", "sandbox_secret_key_change_in_production")

    chain = chain or Chain()
    engine = chain.deploy(FungibleEscrowEngine(config or EngineConfig.from_env()))
    keys = {}  # address -> AccountKey, sandbox only

    app.config['CHAIN'] = chain
    app.config['ENGINE'] = engine

    @app.errorhandler(EscrowError)
    def handle_escrow_error(error):
        status = next((code for cls, code in ERROR_STATUS if isinstance(error, cls)), 400)
        app.logger.warning("%s: %s", type(error).__name__, error)
        return jsonify({'success': False, 'error': type(error).__name__, 'message': str(error)}), status

    @app.errorhandler(KeyError)
    def handle_missing_field(error):
        return jsonify({'success': False, 'error': 'MissingField', 'message': str(error)}), 400

    @app.route('/api/engine')
    def get_engine():
        """Engine address and fee configuration"""
        return jsonify({
            'address': engine.address,
            'max_agent_fee_bps': engine.config.max_agent_fee_bps,
            'fee_base': engine.config.fee_base,
        })

    @app.route('/api/accounts', methods=['POST'])
    def create_account():
        """Generate a key pair held by the sandbox"""
        key = AccountKey()
        keys[key.address] = key
        app.logger.debug("Created account %s", key.address)
        return jsonify({'success': True, 'address': key.address, 'private_key': key.private_key_hex()})

    @app.route('/api/accounts/<address>/sign', methods=['POST'])
    def sign_escrow(address):
        """Sign an escrow id with a sandbox-held key"""
        key = keys.get(address.lower())
        if key is None:
            return jsonify({'error': 'Account not found'}), 404

        data = request.get_json(force=True)
        return jsonify({'success': True, 'signature': key.sign_escrow_id(data['escrow_id'])})

    @app.route('/api/tokens', methods=['POST'])
    def deploy_token():
        """Deploy a fungible token"""
        data = request.get_json(force=True)
        token = chain.deploy(FungibleToken(data['name'], data['symbol'], data.get('decimals', 18)))
        return jsonify({'success': True, 'address': token.address})

    @app.route('/api/tokens/<address>/mint', methods=['POST'])
    def mint(address):
        data = request.get_json(force=True)
        token = chain.contract_at(address)
        token.mint(data['to'], int(data['amount']))
        return jsonify({'success': True, 'balance': token.balance_of(data['to'])})

    @app.route('/api/tokens/<address>/approve', methods=['POST'])
    def approve(address):
        """Approve the escrow engine (or another spender) to pull tokens"""
        data = request.get_json(force=True)
        token = chain.contract_at(address)
        spender = data.get('spender', engine.address)
        ok = token.approve(data['owner'], spender, int(data['amount']))
        return jsonify({'success': ok, 'allowance': token.allowance(data['owner'], spender)})

    @app.route('/api/tokens/<address>/balance/<account>')
    def balance(address, account):
        return jsonify({'balance': chain.contract_at(address).balance_of(account)})

    @app.route('/api/escrows', methods=['POST'])
    def create_escrow():
        """Create an escrow directly"""
        data = request.get_json(force=True)
        escrow_id = engine.create_escrow(
            data['sender'],
            data['agent'],
            data['depositant'],
            data['beneficiary'],
            int(data['agent_fee']),
            data['token'],
            int(data['salt']),
            _hex_bytes(data.get('agent_data')),
        )
        return jsonify({'success': True, 'escrow_id': escrow_id})

    @app.route('/api/escrows/signed', methods=['POST'])
    def sign_create_escrow():
        """Create an escrow relayed with the agent's signature"""
        data = request.get_json(force=True)
        escrow_id = engine.sign_create_escrow(
            data['sender'],
            data['agent'],
            data['depositant'],
            data['beneficiary'],
            int(data['agent_fee']),
            data['token'],
            int(data['salt']),
            data['signature'],
        )
        return jsonify({'success': True, 'escrow_id': escrow_id})

    @app.route('/api/escrows/id', methods=['POST'])
    def calculate_id():
        data = request.get_json(force=True)
        escrow_id = engine.calculate_id(
            data['agent'], data['depositant'], data['beneficiary'],
            int(data['agent_fee']), data['token'], int(data['salt']),
        )
        return jsonify({'escrow_id': escrow_id})

    @app.route('/api/signatures/cancel', methods=['POST'])
    def cancel_signature():
        data = request.get_json(force=True)
        newly_canceled = engine.cancel_signature(data['sender'], data['signature'])
        return jsonify({'success': True, 'newly_canceled': newly_canceled})

    @app.route('/api/escrows/<escrow_id>')
    def get_escrow(escrow_id):
        """Get escrow information"""
        escrow = engine.get_escrow(escrow_id)
        if escrow is None:
            return jsonify({'error': 'Escrow not found', 'retired': engine.is_retired(escrow_id)}), 404
        return jsonify({'escrow_id': escrow_id.lower(), **escrow.to_dict()})

    @app.route('/api/escrows/<escrow_id>/deposit', methods=['POST'])
    def deposit(escrow_id):
        data = request.get_json(force=True)
        engine.deposit(data['sender'], escrow_id, int(data['amount']))
        return jsonify({'success': True, 'balance': engine.get_escrow(escrow_id).balance})

    @app.route('/api/escrows/<escrow_id>/withdraw', methods=['POST'])
    def withdraw(escrow_id):
        """Withdraw to the beneficiary (default) or back to the depositant"""
        data = request.get_json(force=True)
        target = data.get('to', 'beneficiary')
        if target == 'beneficiary':
            method = engine.withdraw_to_beneficiary
        elif target == 'depositant':
            method = engine.withdraw_to_depositant
        else:
            return jsonify({'success': False, 'error': f"Unknown recipient {target}"}), 400

        to_amount = method(data['sender'], escrow_id, int(data['amount']), _hex_bytes(data.get('data')))
        return jsonify({
            'success': True,
            'to_amount': to_amount,
            'remaining_balance': engine.get_escrow(escrow_id).balance,
        })

    @app.route('/api/escrows/<escrow_id>/cancel', methods=['POST'])
    def cancel(escrow_id):
        data = request.get_json(force=True)
        refunded = engine.cancel(data['sender'], escrow_id, _hex_bytes(data.get('data')))
        return jsonify({'success': True, 'refunded': refunded})

    @app.route('/api/events')
    def events():
        """Events in emission order, optionally from index ?since=N"""
        since = request.args.get('since', 0, type=int)
        return jsonify({
            'events': [event.to_dict() for event in chain.events.since(since)],
            'next': len(chain.events),
        })

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 10000))
    create_app().run(
        host="0.0.0.0",
        port=port,
        debug=False
    )
