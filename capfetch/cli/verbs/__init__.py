"""CLI verb modules."""
