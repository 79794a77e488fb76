"""feedloop: a resilient long-poll loop for pull-based event feeds."""

__version__ = "0.1.0"
