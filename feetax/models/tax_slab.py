from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

"""TaxSlab model and the fixed progressive slab table.

The table is defined once at import time and never mutated. Boundaries follow
the inclusive-min convention used by the tax engine: a slab starting at
400001 means the 400001st currency unit is the first one taxed at that rate.
"""

__all__ = [
    "TaxSlab",
    "DEFAULT_TAX_SLABS",
    "SlabTableError",
    "validate_slabs",
]


class SlabTableError(ValueError):
    """Raised when a slab table is not an ordered, gap-free cover of [0, inf)."""


@dataclass(frozen=True)
class TaxSlab:
    """One contiguous monetary range taxed at a single rate."""
    min: float  # first currency unit in this slab
    max: float  # last currency unit (math.inf for the top slab)
    rate: float  # fraction in [0, 1]


DEFAULT_TAX_SLABS: tuple[TaxSlab, ...] = (
    TaxSlab(min=0, max=400000, rate=0.0),
    TaxSlab(min=400001, max=800000, rate=0.05),
    TaxSlab(min=800001, max=1200000, rate=0.10),
    TaxSlab(min=1200001, max=1600000, rate=0.15),
    TaxSlab(min=1600001, max=2000000, rate=0.20),
    TaxSlab(min=2000001, max=2400000, rate=0.25),
    TaxSlab(min=2400001, max=math.inf, rate=0.30),
)


def validate_slabs(slabs: Sequence[TaxSlab]) -> None:
    """Check that ``slabs`` is a usable progressive table.

    Rules:
    - at least one slab, first starting at 0
    - each slab starts one unit after the previous one ends (no gaps/overlaps)
    - min, max and rate are non-decreasing
    - rates within [0, 1]
    - last slab unbounded

    Raises:
        SlabTableError: describing the first rule violated
    """
    if not slabs:
        raise SlabTableError("slab table is empty")
    if slabs[0].min != 0:
        raise SlabTableError(f"first slab must start at 0, got {slabs[0].min}")
    prev: TaxSlab | None = None
    for idx, slab in enumerate(slabs):
        if not 0 <= slab.rate <= 1:
            raise SlabTableError(f"slab {idx} rate out of range: {slab.rate}")
        if slab.max < slab.min:
            raise SlabTableError(f"slab {idx} max {slab.max} below min {slab.min}")
        if prev is not None:
            if slab.min != prev.max + 1:
                raise SlabTableError(
                    f"slab {idx} starts at {slab.min}, expected {prev.max + 1}"
                )
            if slab.rate < prev.rate:
                raise SlabTableError(f"slab {idx} rate {slab.rate} lower than previous {prev.rate}")
        prev = slab
    if not math.isinf(slabs[-1].max):
        raise SlabTableError("last slab must be unbounded")


validate_slabs(DEFAULT_TAX_SLABS)
