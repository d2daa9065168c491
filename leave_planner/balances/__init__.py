"""Balances module — trip weighing, usage, carry-over and allowance computation."""
