from __future__ import annotations

import math
from collections.abc import Sequence

from ..models.tax_slab import DEFAULT_TAX_SLABS, TaxSlab

"""Progressive slab tax engine.

Boundary convention: every slab whose ``min`` is strictly below the amount
contributes ``rate * (min(amount, max) - min + 1)``. The ``+ 1`` counts the
slab's first unit as taxed at the slab's own rate, so an amount just past a
boundary is taxed slightly more than a pure half-open split would give. This
matches figures already published to students and is kept as-is.

No rounding happens here; callers round for display only.
"""

__all__ = [
    "compute_tax",
]


def compute_tax(amount: float, slabs: Sequence[TaxSlab] = DEFAULT_TAX_SLABS) -> float:
    """Return the tax owed on ``amount`` under ``slabs``.

    Negative or NaN amounts yield 0.0 rather than raising; callers are
    expected to pass validated, non-negative amounts.

    Examples:
        >>> compute_tax(400000)
        0.0
        >>> round(compute_tax(400002), 2)
        0.1
    """
    if math.isnan(amount) or amount < 0:
        return 0.0
    tax = 0.0
    for slab in slabs:
        if amount > slab.min:
            tax += slab.rate * (min(amount, slab.max) - slab.min + 1)
    return tax
