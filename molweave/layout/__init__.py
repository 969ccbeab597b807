"""2D coordinate generation."""

from molweave.layout.coordinates import generate_coordinates, layout_ring_system

__all__ = [
    "generate_coordinates",
    "layout_ring_system",
]
