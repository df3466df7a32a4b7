from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from postal.api.deps import forbid_extra_query, get_shipment_service
from postal.models.shipment import ShipmentStatus, ShipmentType, ShipmentWeight
from postal.schemas.shipment_schema import (
    ShipmentCreate,
    ShipmentFilter,
    ShipmentOut,
    ShipmentPage,
    ShipmentUpdate,
)
from postal.services.shipment_service import ShipmentService

router = APIRouter(prefix="/api/shipments", tags=["shipments"])

LIST_QUERY_KEYS = (
    "status", "type", "weight", "shipmentNumber", "postOfficeId", "page", "limit",
)


@router.get("", response_model=ShipmentPage, summary="List shipments with filters and pagination")
def list_shipments(
    request: Request,
    status: Optional[ShipmentStatus] = Query(None),
    type: Optional[ShipmentType] = Query(None),
    weight: Optional[ShipmentWeight] = Query(None),
    shipment_number: Optional[str] = Query(None, alias="shipmentNumber"),
    post_office_id: Optional[str] = Query(
        None, alias="postOfficeId", description="zip code; shipments currently handled there"
    ),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    svc: ShipmentService = Depends(get_shipment_service),
):
    forbid_extra_query(request, LIST_QUERY_KEYS)
    flt = ShipmentFilter(
        status=status,
        type=type,
        weight=weight,
        shipment_number=shipment_number,
        post_office_id=post_office_id,
    )
    result = svc.list(flt, page=page, limit=limit)
    result["shipments"] = [ShipmentOut.model_validate(s) for s in result["shipments"]]
    return ShipmentPage(**result)


@router.get("/{shipment_id}", response_model=ShipmentOut, summary="Get a shipment")
def get_shipment(shipment_id: int, svc: ShipmentService = Depends(get_shipment_service)):
    return ShipmentOut.model_validate(svc.get(shipment_id))


@router.post("", status_code=201, response_model=ShipmentOut, summary="Create a shipment")
def create_shipment(
    payload: ShipmentCreate, svc: ShipmentService = Depends(get_shipment_service)
):
    return ShipmentOut.model_validate(svc.create(payload))


@router.patch("/{shipment_id}", response_model=ShipmentOut, summary="Update a shipment")
def update_shipment(
    shipment_id: int,
    payload: ShipmentUpdate,
    svc: ShipmentService = Depends(get_shipment_service),
):
    return ShipmentOut.model_validate(svc.update(shipment_id, payload))


@router.delete("/{shipment_id}", summary="Delete a shipment")
def delete_shipment(shipment_id: int, svc: ShipmentService = Depends(get_shipment_service)):
    svc.delete(shipment_id)
    return {"message": "Shipment deleted successfully"}
