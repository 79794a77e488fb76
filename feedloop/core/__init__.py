"""Core Application Layer: the feed loop lifecycle and event dispatch.

Connects the domain contracts with the resilience infrastructure.
"""
