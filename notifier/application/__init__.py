"""Application layer: snapshot store, reconciliation, scheduling and dispatch.

Depends on the domain layer and on the ports in interfaces/; concrete
adapters live in notifier.infrastructure.
"""
