"""VehicleProfile class - the vehicle data needed to provision reminders."""

from datetime import datetime
from typing import Optional


class VehicleProfile:
    """Vehicle identification and usage figures supplied at registration."""

    def __init__(
        self,
        id: str,
        name: Optional[str] = None,
        next_inspection_date: Optional[datetime] = None,
        average_km_per_month: Optional[float] = None,
        current_odometer_km: Optional[int] = None,
    ):
        self.id = id
        self.name = name
        self.next_inspection_date = next_inspection_date
        self.average_km_per_month = average_km_per_month
        self.current_odometer_km = current_odometer_km

    @property
    def display_name(self) -> str:
        return self.name or self.id
