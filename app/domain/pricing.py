"""Booking price composition.

- Base fare: catalog reservation fee + local payment fee for the corridor
- Vehicle upgrades: charged per requested vehicle line item
  (standard: 0, xl: XL upgrade fee, premium: premium upgrade fee)
- Total: reservation fee + local payment fee + upgrade fees
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class VehicleType(str, Enum):
    """Requested vehicle classes."""

    STANDARD = "standard"
    XL = "xl"
    PREMIUM = "premium"


@dataclass(frozen=True)
class UpgradeFees:
    xl: int
    premium: int

    def for_type(self, vehicle_type: str) -> int:
        if vehicle_type == VehicleType.XL.value:
            return self.xl
        if vehicle_type == VehicleType.PREMIUM.value:
            return self.premium
        return 0


def calculate_upgrade_fee(vehicle_types: Iterable[str], fees: UpgradeFees) -> int:
    """Sum the upgrade fee over all requested vehicles."""
    return sum(fees.for_type(vehicle_type) for vehicle_type in vehicle_types)


def calculate_total(reservation_fee: int, local_payment_fee: int, upgrade_fee: int = 0) -> int:
    if min(reservation_fee, local_payment_fee, upgrade_fee) < 0:
        raise ValueError("Fees must be non-negative")
    return reservation_fee + local_payment_fee + upgrade_fee
