from typing import Dict

from postal.errors import IllegalMutation
from postal.models.shipment import Shipment, ShipmentStatus


class ShipmentLifecycle:
    """
    Decides which fields an update may touch given the shipment's status.

    - ORIGIN_PROCESSED: the request must carry a status and nothing else.
    - any later status: every field is optional and independently applied,
      but status can never go back to ORIGIN_PROCESSED.
    - DELIVERED accepts updates unless `delivered_is_terminal` is set.
    """

    def __init__(self, delivered_is_terminal: bool = False):
        self.delivered_is_terminal = delivered_is_terminal

    def authorize(self, shipment: Shipment, changes: Dict) -> Dict:
        current = shipment.status

        if current == ShipmentStatus.DELIVERED and self.delivered_is_terminal:
            raise IllegalMutation(
                f"Shipment {shipment.shipment_number} is delivered and can not be updated"
            )

        if current == ShipmentStatus.ORIGIN_PROCESSED:
            if "status" not in changes:
                raise IllegalMutation(
                    "Shipment at origin accepts a status change only; status is missing"
                )
            extra = sorted(k for k in changes if k != "status")
            if extra:
                raise IllegalMutation(
                    f"Shipment at origin accepts a status change only; got {', '.join(extra)}"
                )
            return changes

        if changes.get("status") == ShipmentStatus.ORIGIN_PROCESSED:
            raise IllegalMutation("ORIGIN_PROCESSED can only be set at creation")
        return changes
