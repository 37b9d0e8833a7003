"""Taxi availability states."""

from enum import Enum


class TaxiStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


TAXI_STATUSES = tuple(status.value for status in TaxiStatus)
