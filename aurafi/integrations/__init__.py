"""aurafi.integrations

Collaborators the vault talks to but does not own.
"""

from .oracle import HttpOracleFeed, OracleFeed, StaticOracle
from .settlement import FeeAccumulator, FeeSink, PayoutLedger, PayoutRail
from .token import RestrictedToken, TokenLedger

__all__ = [
    "FeeAccumulator",
    "FeeSink",
    "HttpOracleFeed",
    "OracleFeed",
    "PayoutLedger",
    "PayoutRail",
    "RestrictedToken",
    "StaticOracle",
    "TokenLedger",
]
