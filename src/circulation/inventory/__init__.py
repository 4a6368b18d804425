"""Current-holder inventory module.

Provides functionality for:
- Knowing whether a book is out and who holds it
- Claiming a book for a borrower, with the store enforcing one holder
- Releasing a book on return
"""

from .models import CurrentBorrow
from .tracker import InventoryTracker

__all__ = [
    "CurrentBorrow",
    "InventoryTracker",
]
