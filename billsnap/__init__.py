"""BillSnap license gate."""

__version__ = "1.0.0"
