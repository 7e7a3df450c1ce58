"""RFC 2782 priority and weight selection for SRV records.

Only the most preferred priority tier competes. Within the tier, zero-weight
records are placed ahead of weighted ones so they can be picked before any
weight is consumed; weighted records win in proportion to their share.
"""

import random
from typing import List, Optional, Sequence, Tuple

from social.graze.avatars.resolve.srv import ServiceRecord

_random = random.Random()


def top_priority_tier(records: Sequence[ServiceRecord]) -> List[ServiceRecord]:
    """Return the records sharing the lowest priority value, in input order.

    Input is expected in DNS order (priority ascending); a lower priority found
    later restarts the tier.
    """
    tier: List[ServiceRecord] = []
    top_priority: Optional[int] = None
    for record in records:
        if top_priority is None or record.priority < top_priority:
            top_priority = record.priority
            tier = [record]
        elif record.priority == top_priority:
            tier.append(record)
    return tier


def cumulative_weights(weights: Sequence[int]) -> List[Tuple[int, int]]:
    """Build the RFC 2782 candidate order for a tier of weights.

    Walks the weights with a running total. A zero weight is inserted at the
    front tagged with the running total at that point; a positive weight is
    added to the total and appended tagged with the new total.

    Args:
        weights: Record weights in tier order

    Returns:
        (index into weights, cumulative tag) pairs in candidate order

    Example:
        >>> cumulative_weights([10, 0, 20, 0])
        [(3, 30), (1, 10), (0, 10), (2, 30)]
    """
    candidates: List[Tuple[int, int]] = []
    total = 0
    for index, weight in enumerate(weights):
        if weight == 0:
            candidates.insert(0, (index, total))
        else:
            total += weight
            candidates.append((index, total))
    return candidates


def select_record(
    records: Sequence[ServiceRecord], rng: Optional[random.Random] = None
) -> ServiceRecord:
    """Pick one record using RFC 2782 weighted selection.

    Draws r uniformly from 0 to the total weight inclusive and returns the
    first candidate whose cumulative tag is >= r. When every record in the
    tier has weight 0, the candidates are chosen uniformly instead.

    Args:
        records: SRV records for a single domain
        rng: Random source, seedable for tests

    Returns:
        The selected ServiceRecord

    Raises:
        ValueError: If records is empty
    """
    tier = top_priority_tier(records)
    if len(tier) == 0:
        raise ValueError("cannot select from an empty record set")

    rng = rng or _random
    candidates = cumulative_weights([record.weight for record in tier])
    if len(candidates) == 1:
        return tier[candidates[0][0]]

    total = candidates[-1][1]
    if total == 0:
        index, _ = rng.choice(candidates)
        return tier[index]

    draw = rng.randint(0, total)
    for index, tag in candidates:
        if tag >= draw:
            return tier[index]

    # Unreachable: the last candidate carries the full total, which is at least draw.
    return tier[candidates[-1][0]]
