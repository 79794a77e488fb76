"""Feed Resilience Implementations.

Contains the failure classifier, backoff policies and the generic
retry-with-recovery executor.
Bounded Context: Feed Resilience
"""
