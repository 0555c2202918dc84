"""aurafi.core.exceptions

Errors are part of the interface.

Three families matter to callers:
- validation: the call was wrong, nothing changed
- invariant: the books do not balance, stop
- collaborator: something outside the core failed, nothing changed
"""

from __future__ import annotations


class AuraFiError(Exception):
    """Base exception for aurafi."""


class ConfigError(AuraFiError):
    """Configuration is missing, invalid, or inconsistent."""


class EventStoreError(AuraFiError):
    """Event store failures: schema, IO, integrity, or invariants."""



class SecurityError(AuraFiError):
    """Security invariant violated."""


class ReentrantCallError(SecurityError):
    """A mutating entry point was entered while another one was running."""


class InvariantViolation(AuraFiError):
    """Position accounting no longer reconciles with the ledger. Unrecoverable."""


# -----------------
# Collaborators
# -----------------


class ExternalCollaboratorError(AuraFiError):
    """A dependency outside the core failed. The whole call fails with it."""


class OracleError(ExternalCollaboratorError):
    """Aura read failed or returned an out-of-range score."""


class TokenLedgerError(ExternalCollaboratorError):
    """Token ledger rejected a mint or burn."""


# -----------------
# Validation
# -----------------


class LedgerValidationError(AuraFiError):
    """The call was rejected before any state changed."""

    code = "validation_error"


class UnauthorizedError(LedgerValidationError):
    """Only the creator may do that."""

    code = "unauthorized"


class InsufficientPaymentError(LedgerValidationError):
    """Zero is not an amount."""

    code = "insufficient_payment"


class InsufficientBalanceError(LedgerValidationError):
    """You cannot redeem tokens you do not hold."""

    code = "insufficient_balance"


class StageNotUnlockedError(LedgerValidationError):
    """Stage zero mints nothing."""

    code = "stage_not_unlocked"


class InvalidStageError(LedgerValidationError):
    """No such stage in the stage table."""

    code = "invalid_stage"


class InsufficientCollateralError(LedgerValidationError):
    """Backing below requirement."""

    code = "insufficient_collateral"


class ExceedsStageCapError(LedgerValidationError):
    """Stage mint capacity reached. Stake more to unlock the next stage."""

    code = "exceeds_stage_cap"


class ExceedsSupplyCapError(LedgerValidationError):
    """Aura does not support this much supply."""

    code = "exceeds_supply_cap"


class HealthTooLowError(LedgerValidationError):
    """The ledger would end below the minimum collateral ratio."""

    code = "health_too_low"


class GracePeriodActiveError(LedgerValidationError):
    """No forced burn is executable yet."""

    code = "grace_period_active"


class NotLiquidatableError(LedgerValidationError):
    """Ledger is healthy. Nothing to liquidate."""

    code = "not_liquidatable"


class InsufficientLiquidationError(LedgerValidationError):
    """The payment already covers supply. No tokens would be removed."""

    code = "insufficient_liquidation"
