"""MaintenanceEvent class for logged services that drive reminder generation."""
from datetime import datetime
from typing import Optional


class MaintenanceEvent:
    """A record of maintenance performed, as handed over by the history collaborator."""

    def __init__(
            self,
            car_id: str,
            category_key: str,
            performed_at: datetime,
            odometer_at_service: Optional[int] = None,
            event_id: Optional[str] = None,
    ):
        self.car_id = car_id
        self.category_key = category_key
        self.performed_at = performed_at
        self.odometer_at_service = odometer_at_service
        self.event_id = event_id
