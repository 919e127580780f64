"""
Shared Kernel

Base value objects, domain errors, domain events and transaction helpers
shared by the cubicle, reservation and analytics apps.
"""
