"""Structure transforms."""

from molweave.transform.kekulize import kekulize
from molweave.exceptions import KekulizeError

__all__ = [
    "kekulize",
    "KekulizeError",
]
