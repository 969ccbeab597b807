"""
Configuration for coordinate generation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# Bond length of generated depictions, in layout units
DEFAULT_BOND_LENGTH: Final[float] = 1.0


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """Parameters of the 2D coordinate generator.

    Attributes:
        bond_length: Distance between bonded atoms.
        min_distance: Closest allowed approach of a newly placed atom to an
            already placed one, as a fraction of ``bond_length``.
        component_gap: Horizontal gap between disconnected components, as a
            fraction of ``bond_length``.
        max_retries: Alternative angles tried for a clashing chain atom.
    """

    bond_length: float = DEFAULT_BOND_LENGTH
    min_distance: float = 0.5
    component_gap: float = 2.0
    max_retries: int = 12

    def __post_init__(self) -> None:
        if self.bond_length <= 0:
            raise ValueError("bond_length must be positive")
        if self.min_distance < 0 or self.component_gap < 0:
            raise ValueError("min_distance and component_gap must be non-negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
