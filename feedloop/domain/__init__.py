"""Domain Layer: feed identifiers, failure taxonomy, collaborator contracts
and lifecycle events. Has no dependency on the infrastructure layer.
"""
