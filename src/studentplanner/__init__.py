"""Student meal planning, inventory and shopping trip optimization."""

__version__ = "0.1.0"
