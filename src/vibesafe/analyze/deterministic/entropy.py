from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass

ENTROPY_THRESHOLD = 4.0
MIN_DISTINCT_CHARS = 10


@dataclass(frozen=True)
class EntropyGate:
    min_distinct_chars: int = MIN_DISTINCT_CHARS
    min_shannon_bits: float = ENTROPY_THRESHOLD


def calculate_entropy(s: str) -> float:
    """Shannon entropy of ``s`` in bits per character."""
    if not s:
        return 0.0
    length = len(s)
    entropy = 0.0
    for count in Counter(s).values():
        prob = count / length
        entropy -= prob * math.log2(prob)
    return entropy


def distinct_chars(s: str) -> int:
    return len(set(s))


def is_high_entropy(candidate: str, gate: EntropyGate = EntropyGate()) -> bool:
    # Two symbols or fewer (runs, strict alternation) can never pass, whatever the gate says.
    if distinct_chars(candidate) <= 2:
        return False
    if distinct_chars(candidate) < gate.min_distinct_chars:
        return False
    return calculate_entropy(candidate) >= gate.min_shannon_bits
