"""
Failure taxonomy shared by both escrow engines
"""


class EscrowError(Exception):
    """Base class for escrow-related failures."""


class ValidationError(EscrowError, ValueError):
    """Parameters are malformed or violate a creation rule."""


class FeeTooHigh(ValidationError):
    """Agent fee exceeds the configured cap."""


class EscrowExists(ValidationError):
    """An escrow with the derived id is already registered."""


class EscrowRetired(EscrowExists):
    """The derived id belonged to a canceled escrow and cannot be reused."""


class InvalidAddress(ValidationError):
    """Value is not a 20-byte hex address."""


class InvalidUint(ValidationError):
    """Value is not an unsigned 256-bit integer."""


class AlreadyFunded(ValidationError):
    """The non-fungible escrow already holds its asset."""


class NotFunded(ValidationError):
    """The non-fungible escrow holds nothing to release."""


class AuthorizationError(EscrowError):
    """Caller lacks permission for this operation."""


class Unauthorized(AuthorizationError):
    """Sender is not one of the parties allowed to act."""


class InvalidSignature(AuthorizationError):
    """Signature is malformed or was not produced by the agent."""


class SignatureCanceled(AuthorizationError):
    """Signature was revoked by its signer."""


class CapabilityRejected(EscrowError):
    """Programmable agent declined the action or failed while deciding."""


class EscrowArithmeticError(EscrowError, ArithmeticError):
    """Checked arithmetic on escrow balances failed."""


class ArithmeticUnderflow(EscrowArithmeticError):
    """Subtraction would take a balance below zero."""


class ArithmeticOverflow(EscrowArithmeticError):
    """Addition would take a balance above the uint256 range."""


class ExternalCallFailure(EscrowError):
    """An asset contract call failed or targeted a non-contract."""


class ReentrantCall(EscrowError):
    """Engine entry point was re-entered before the outer call finished."""
