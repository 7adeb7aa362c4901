"""Integration tests.

These spawn real child processes through ``ProcessRunner``.  Run only
the fast suite with ``pytest tests/unit/`` or deselect these with
``-m "not integration"``.
"""
from __future__ import annotations
