"""aurafi.vault

The ledger engine: pricing, positions, stages, mint, redeem, contraction, liquidation.
"""

from .params import VaultParams
from .positions import Position, PositionStore
from .stages import StageTable
from .types import ContractionState, LedgerState, StageConfig
from .vault import CreatorVault, VaultSnapshot

__all__ = [
    "ContractionState",
    "CreatorVault",
    "LedgerState",
    "Position",
    "PositionStore",
    "StageConfig",
    "StageTable",
    "VaultParams",
    "VaultSnapshot",
]
