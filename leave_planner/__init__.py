"""Leave Planner — leave entitlement balance engine and its HTTP surface."""

__version__ = "1.0.0"
