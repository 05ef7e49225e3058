"""
Character-based size estimation for prompt context.

Exact tokenization is not needed: the estimate is a soft sizing signal
reported on the built context, never used to truncate it.
"""

import math
from typing import Iterable, Optional

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough token estimate: ~4 chars per token, at least 1 per string."""
    return max(1, math.ceil(len(text or "") / CHARS_PER_TOKEN))


def estimate_total_tokens(
    *groups: Iterable[str],
    extra: Optional[Iterable[Optional[str]]] = None,
) -> int:
    """Sum ``estimate_tokens`` over every string in ``groups`` and ``extra``.

    ``None`` values in ``extra`` are skipped (unset optional sections).
    """
    total = 0
    for group in groups:
        total += sum(estimate_tokens(s) for s in group)
    for s in extra or ():
        if s is not None:
            total += estimate_tokens(s)
    return total
