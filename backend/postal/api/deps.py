from typing import Iterable

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.orm import Session

from postal.db import get_db
from postal.services.post_office_service import PostOfficeService
from postal.services.shipment_service import ShipmentService


def get_post_office_service(request: Request, db: Session = Depends(get_db)):
    return PostOfficeService(db, settings=request.app.state.settings)


def get_shipment_service(request: Request, db: Session = Depends(get_db)):
    return ShipmentService(db, settings=request.app.state.settings)


def forbid_extra_query(request: Request, allowed: Iterable[str] = ()) -> None:
    """Reject query keys outside `allowed`; FastAPI itself ignores them."""
    allowed = set(allowed)
    extra = [k for k in request.query_params if k not in allowed]
    if extra:
        raise RequestValidationError(
            [
                {"loc": ("query", k), "msg": "Extra inputs are not permitted", "type": "extra_forbidden"}
                for k in extra
            ]
        )
