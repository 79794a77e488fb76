"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that external collaborators
must implement. The feed loop depends on these interfaces, not on concrete
transports, stores or handlers.
"""
