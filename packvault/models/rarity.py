"""
Rarity policy for pack generation.

A policy is an ordered table of tiers, each with a relative draw weight
and the default income rate for cards bootstrapped at that tier.
Policies are immutable and safe to share across concurrent operations.
"""

import random
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RarityTier:
    """
    One rarity tier.

    Attributes:
        name: Tier name as stored on catalog cards (e.g., "epic")
        weight: Relative draw weight (non-negative)
        coins_per_hour: Default income for cards created at this tier
    """

    name: str
    weight: float
    coins_per_hour: int


@dataclass(frozen=True, slots=True)
class RarityPolicy:
    """Weighted rarity table. Tier order matters for sampling."""

    tiers: tuple[RarityTier, ...]

    def __post_init__(self) -> None:
        if not self.tiers:
            raise ValueError("Rarity policy needs at least one tier")

        names = [t.name for t in self.tiers]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate rarity names: {names}")

        for tier in self.tiers:
            if tier.weight < 0:
                raise ValueError(f"Rarity '{tier.name}' has negative weight")
            if tier.coins_per_hour < 0:
                raise ValueError(f"Rarity '{tier.name}' has negative income")

        if self.total_weight <= 0:
            raise ValueError("Rarity policy total weight must be positive")

    @property
    def total_weight(self) -> float:
        return sum(t.weight for t in self.tiers)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(t.name for t in self.tiers)

    def get(self, name: str) -> RarityTier | None:
        """Look up a tier by name (case-insensitive)."""
        wanted = name.strip().lower()
        for tier in self.tiers:
            if tier.name == wanted:
                return tier
        return None

    def choose(self, rng: random.Random | None = None) -> RarityTier:
        """
        Pick one tier by weighted random sampling.

        Draws a value in [0, total_weight) and walks the table subtracting
        weights until the remainder is non-positive. Always returns a tier:
        float slack falls through to the last one.
        """
        rng = rng or random
        remaining = rng.random() * self.total_weight
        for tier in self.tiers:
            remaining -= tier.weight
            if remaining <= 0:
                return tier
        return self.tiers[-1]


DEFAULT_POLICY = RarityPolicy(
    tiers=(
        RarityTier("common", weight=60, coins_per_hour=1),
        RarityTier("rare", weight=25, coins_per_hour=3),
        RarityTier("epic", weight=10, coins_per_hour=8),
        RarityTier("legendary", weight=5, coins_per_hour=20),
    )
)
