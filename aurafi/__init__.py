"""aurafi: creator tokens backed by stake and reputation.

Two collateral sources back every token: the creator's stake and the fans' deposits.
Aura moves the peg and the supply cap. The ledger keeps everyone honest.
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "A_MIN",
    "A_MAX",
    "A_REF",
]

__version__ = "1.0.0"

# Aura is a bounded integer score. A_REF is the neutral point: peg 1.0, cap 1.0x.
A_MIN = 0
A_MAX = 200
A_REF = 100
