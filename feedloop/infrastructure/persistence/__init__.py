"""Feed id persistence adapters."""
