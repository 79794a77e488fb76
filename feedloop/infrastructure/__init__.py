"""Infrastructure Layer: Contains concrete implementations and adapters.

Retry/recovery execution, feed id persistence, configuration, logging and
correlation context.
"""
