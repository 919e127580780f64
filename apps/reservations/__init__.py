"""Reservations app package.

Date-scoped cubicle reservations: the ledger that guarantees one live
booking per cubicle per day, the reservation lifecycle, the per-date
grid index and the scheduled expiry and cleanup sweeps.
"""
