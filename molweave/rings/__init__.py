"""Ring detection and analysis."""

from molweave.rings.detection import (
    Ring,
    RingSystem,
    find_ring_systems,
    find_sssr,
    get_min_ring_sizes,
    get_ring_bonds,
    get_ring_membership,
)

__all__ = [
    "Ring",
    "RingSystem",
    "find_sssr",
    "find_ring_systems",
    "get_ring_bonds",
    "get_ring_membership",
    "get_min_ring_sizes",
]
