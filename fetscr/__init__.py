"""Fetscr: quota-enforced search aggregation over Google Custom Search."""

__version__ = "0.1.0"
