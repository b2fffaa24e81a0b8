"""capfetch CLI."""
