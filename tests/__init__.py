"""Tests package for Fetscr."""
