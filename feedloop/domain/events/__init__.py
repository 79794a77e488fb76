"""Domain Event definitions.

Represents significant occurrences in the feed loop lifecycle that
observers (metrics, audit, tests) might react to.
"""
