"""Seedable random number generator shared by agents and the board generator.

Every random decision in the project (tie-breaking between target
candidates, random-walk fallbacks, fruit placement) goes through a
:class:`GameRNG` instance so a match can be replayed from its seed.
"""

from __future__ import annotations

import random
from typing import Any, List, Optional, Sequence

import numpy as np


class GameRNG:
    def __init__(self, seed: Optional[int] = None) -> None:
        self.initial_seed = seed if seed is not None else random.randint(0, 2**32 - 1)
        self.rng = np.random.default_rng(self.initial_seed)

    def __repr__(self) -> str:
        return f"GameRNG(seed={self.initial_seed})"

    def get_int(self, a: int, b: int) -> int:
        """Uniform integer in the closed range ``[a, b]``."""
        if a > b:
            raise ValueError("a <= b")
        return int(self.rng.integers(a, b + 1))

    # ------------------------------------------------------------------
    # sequence utilities
    # ------------------------------------------------------------------
    def shuffle(self, seq: List[Any]) -> None:
        self.rng.shuffle(seq)

    def choice(self, seq: Sequence[Any]) -> Any:
        """Return a random element from *seq*."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.get_int(0, len(seq) - 1)]

    def sample(self, items: Sequence[Any], k: int) -> List[Any]:
        """``k`` distinct elements of ``items`` in random order."""
        if k < 0:
            raise ValueError("k >= 0")
        if k > len(items):
            raise ValueError("k <= len(items)")
        idx = self.rng.permutation(len(items))[:k]
        return [items[i] for i in idx]


__all__ = ["GameRNG"]
