"""Plan lookup adapters."""
