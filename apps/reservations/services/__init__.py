"""Reservation services: the ledger, the per-date grid index and booking windows."""

from .grid_index import GridDateIndex
from .ledger import ReservationLedger

__all__ = ["GridDateIndex", "ReservationLedger"]
