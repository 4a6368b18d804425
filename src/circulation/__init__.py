"""Book circulation: who holds which book, and every loan it ever had."""

__version__ = "0.1.0"
