"""
Zero-link routing: privacy-aware UTXO scoring and selection.

Each candidate gets an additive heuristic score favouring inputs that are
unlikely to link transactions together (unused, non-round, age-diverse).
Selection then greedily takes the best-scored inputs until the target plus
the fixed fee is covered, and shuffles the result.

The returned order is deliberately random: two calls with identical inputs
may return the same UTXOs in different orders. Pass a seeded
``random.Random`` as ``rng`` for reproducible output. The shuffle is for
decorrelating input order from scoring, not a cryptographic property, so
no CSPRNG is required.

Selection is NOT guaranteed to be minimal in input count or total value;
it only guarantees the selected total covers the amount plus fee.
"""

from __future__ import annotations

import random
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from loguru import logger

from zlcore.amounts import parse_zec, zec_to_zatoshi
from zlcore.constants import (
    AGE_DIVERSITY_RATIO,
    DEFAULT_FEE_ZATOSHI,
    DEFAULT_OVERAGE_CEILING,
    ROUND_AMOUNT_UNIT,
    SCORE_AGE_DIVERSITY,
    SCORE_NON_ROUND_AMOUNT,
    SCORE_NOT_RECENTLY_USED,
    SCORE_RECENTLY_USED,
    SCORE_ROUND_AMOUNT,
    SCORE_SMALL_UTXO,
    SCORE_WELL_CONFIRMED,
    SMALL_UTXO_THRESHOLD,
    WELL_CONFIRMED_THRESHOLD,
)
from zlcore.errors import InsufficientFundsError, InsufficientInputsError, InvalidAmountError
from zlcore.models import UTXO, CoinSelection

_AGE_RATIO = Decimal(str(AGE_DIVERSITY_RATIO))


class Shuffler(Protocol):
    def shuffle(self, x: list) -> None: ...


@dataclass
class ScoredCandidate:
    """A UTXO with its privacy score and the rules that produced it"""

    utxo: UTXO
    score: int
    reasons: list[str] = field(default_factory=list)


def outpoint_key(utxo: UTXO) -> str:
    """Key used to track recently spent outpoints."""
    return utxo.outpoint


def score_utxo(
    candidate: UTXO,
    all_candidates: Sequence[UTXO],
    recently_used: Collection[str] = frozenset(),
) -> ScoredCandidate:
    """
    Score a single UTXO for zero-link selection.

    Rules are additive and reasons are appended in a fixed order:
    age-diversity, (not-)recently-used, (non-)round-amount, well-confirmed,
    small-utxo.

    Args:
        candidate: UTXO to score (one of all_candidates)
        all_candidates: Full candidate set, used for the average age
        recently_used: Outpoint keys spent recently by the caller

    Returns:
        ScoredCandidate for this UTXO
    """
    if not all_candidates:
        raise InsufficientInputsError("Cannot score a UTXO against an empty candidate set")

    total_confirmations = sum(u.confirmations for u in all_candidates)
    return _score(candidate, len(all_candidates), total_confirmations, recently_used)


def _score(
    candidate: UTXO,
    candidate_count: int,
    total_confirmations: int,
    recently_used: Collection[str],
) -> ScoredCandidate:
    score = 0
    reasons: list[str] = []

    # |c - total/n| > ratio * total/n, scaled by n so it stays exact.
    # Zero average never qualifies.
    deviation = abs(candidate.confirmations * candidate_count - total_confirmations)
    if deviation > _AGE_RATIO * total_confirmations:
        score += SCORE_AGE_DIVERSITY
        reasons.append("age-diversity")

    if outpoint_key(candidate) not in recently_used:
        score += SCORE_NOT_RECENTLY_USED
        reasons.append("not-recently-used")
    else:
        score += SCORE_RECENTLY_USED
        reasons.append("recently-used")

    if candidate.amount % ROUND_AMOUNT_UNIT != 0:
        score += SCORE_NON_ROUND_AMOUNT
        reasons.append("non-round-amount")
    else:
        score += SCORE_ROUND_AMOUNT
        reasons.append("round-amount")

    if candidate.confirmations > WELL_CONFIRMED_THRESHOLD:
        score += SCORE_WELL_CONFIRMED
        reasons.append("well-confirmed")

    if candidate.amount < SMALL_UTXO_THRESHOLD:
        score += SCORE_SMALL_UTXO
        reasons.append("small-utxo")

    return ScoredCandidate(utxo=candidate, score=score, reasons=reasons)


def rank_utxos(
    available_utxos: Sequence[UTXO],
    recently_used: Collection[str] = frozenset(),
) -> list[tuple[int, ScoredCandidate]]:
    """
    Score every candidate and sort by score, highest first.

    Returns (input index, candidate) pairs. The sort is stable, so equal
    scores keep their input order.
    """
    total_confirmations = sum(u.confirmations for u in available_utxos)
    candidate_count = len(available_utxos)
    scored = [
        (index, _score(utxo, candidate_count, total_confirmations, recently_used))
        for index, utxo in enumerate(available_utxos)
    ]
    scored.sort(key=lambda pair: pair[1].score, reverse=True)
    return scored


def required_zatoshi(required_amount: Decimal | int | float | str) -> int:
    """
    Validate a ZEC spend amount and convert it to zatoshi (truncating).

    Raises:
        InvalidAmountError: If the amount is not a positive finite number
    """
    zec = parse_zec(required_amount)
    if zec <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {required_amount}")
    return zec_to_zatoshi(zec)


def select_utxos_for_zero_link(
    required_amount: Decimal | int | float | str,
    available_utxos: Sequence[UTXO],
    recently_used: Collection[str] | None = None,
    *,
    fee: int = DEFAULT_FEE_ZATOSHI,
    overage_ceiling: float = DEFAULT_OVERAGE_CEILING,
    rng: Shuffler | None = None,
) -> list[UTXO]:
    """
    Select UTXOs covering required_amount plus fee, preferring private inputs.

    Args:
        required_amount: Amount to spend in ZEC (truncated to whole zatoshi)
        available_utxos: Candidate UTXOs
        recently_used: Outpoint keys ("txid:vout") the caller spent recently
        fee: Fee in zatoshi added to the target
        overage_ceiling: Greedy pass skips inputs that would push the total
            beyond this multiple of the amount needed
        rng: Source for the final shuffle (defaults to a call-local Random)

    Returns:
        Selected UTXOs in random order, summing to at least amount + fee

    Raises:
        InvalidAmountError: required_amount is not positive and finite
        InsufficientInputsError: available_utxos is empty
        InsufficientFundsError: all candidates together are not enough
    """
    required_units = required_zatoshi(required_amount)

    if not available_utxos:
        raise InsufficientInputsError("No UTXOs available")

    if recently_used is None:
        recently_used = frozenset()

    total_needed = required_units + fee
    ceiling = Decimal(total_needed) * Decimal(str(overage_ceiling))

    ranked = rank_utxos(available_utxos, recently_used)

    selected: list[UTXO] = []
    selected_indices: set[int] = set()
    total_selected = 0

    # Greedy pass: best scores first, skipping anything that overshoots the ceiling
    for index, scored in ranked:
        if total_selected >= total_needed:
            break
        if index in selected_indices:
            continue
        if total_selected + scored.utxo.amount <= ceiling:
            selected.append(scored.utxo)
            selected_indices.add(index)
            total_selected += scored.utxo.amount

    # Top-up pass: same order, ceiling ignored
    if total_selected < total_needed:
        for index, scored in ranked:
            if total_selected >= total_needed:
                break
            if index in selected_indices:
                continue
            selected.append(scored.utxo)
            selected_indices.add(index)
            total_selected += scored.utxo.amount

    # Exhaustion pass: anything left, in input order
    if total_selected < total_needed and len(selected) < len(available_utxos):
        for index, utxo in enumerate(available_utxos):
            if index not in selected_indices:
                selected.append(utxo)
                selected_indices.add(index)
                total_selected += utxo.amount

    if total_selected < total_needed:
        raise InsufficientFundsError(total_needed, total_selected)

    if rng is None:
        rng = random.Random()
    rng.shuffle(selected)

    logger.debug(
        f"Zero-link selection: {len(selected)}/{len(available_utxos)} UTXOs, "
        f"total {total_selected} zatoshi for {total_needed} needed"
    )
    return selected


def plan_zero_link_spend(
    required_amount: Decimal | int | float | str,
    available_utxos: Sequence[UTXO],
    recently_used: Collection[str] | None = None,
    *,
    fee: int = DEFAULT_FEE_ZATOSHI,
    overage_ceiling: float = DEFAULT_OVERAGE_CEILING,
    rng: Shuffler | None = None,
) -> CoinSelection:
    """Run zero-link selection and report totals and change."""
    utxos = select_utxos_for_zero_link(
        required_amount,
        available_utxos,
        recently_used,
        fee=fee,
        overage_ceiling=overage_ceiling,
        rng=rng,
    )
    return CoinSelection(
        utxos=utxos,
        total_value=sum(u.amount for u in utxos),
        target=required_zatoshi(required_amount),
        fee=fee,
    )
