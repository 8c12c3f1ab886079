"""
Zcash amount units and zero-link routing constants.

Amounts inside this package are always integer zatoshi:
- 1 ZEC = 100_000_000 zatoshi
- DEFAULT_FEE_ZATOSHI: the fixed minimum fee (0.0001 ZEC) added to every spend
"""

from __future__ import annotations

ZATOSHI_PER_ZEC = 100_000_000

# Fixed minimum fee for a spend (0.0001 ZEC)
DEFAULT_FEE_ZATOSHI = 10_000

# Address prefixes (case-sensitive)
SHIELDED_ADDRESS_PREFIXES = ("zs1", "zreg", "ztest")
TRANSPARENT_ADDRESS_PREFIXES = ("t1", "tm")

# Scoring thresholds
AGE_DIVERSITY_RATIO = 0.3
ROUND_AMOUNT_UNIT = 1_000_000  # 0.01 ZEC
WELL_CONFIRMED_THRESHOLD = 6  # strictly more than this many confirmations
SMALL_UTXO_THRESHOLD = ZATOSHI_PER_ZEC  # under 1 ZEC

# Score contributions
SCORE_AGE_DIVERSITY = 20
SCORE_NOT_RECENTLY_USED = 30
SCORE_RECENTLY_USED = -50
SCORE_NON_ROUND_AMOUNT = 15
SCORE_ROUND_AMOUNT = -10
SCORE_WELL_CONFIRMED = 10
SCORE_SMALL_UTXO = 5

# Greedy pass ceiling as a multiple of the total needed.
# Tunable heuristic: keeps a single huge UTXO from being bundled early.
DEFAULT_OVERAGE_CEILING = 1.5
