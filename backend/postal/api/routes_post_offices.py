from typing import List

from fastapi import APIRouter, Depends, Request

from postal.api.deps import forbid_extra_query, get_post_office_service
from postal.schemas.post_office_schema import PostOfficeIn, PostOfficeOut
from postal.services.post_office_service import PostOfficeService

router = APIRouter(prefix="/api/postoffices", tags=["post offices"])


@router.post("", status_code=201, response_model=PostOfficeOut, summary="Create a post office")
def create_post_office(
    payload: PostOfficeIn, svc: PostOfficeService = Depends(get_post_office_service)
):
    return PostOfficeOut.model_validate(svc.create(payload.zip_code))


@router.get("", response_model=List[PostOfficeOut], summary="List post offices")
def list_post_offices(
    request: Request, svc: PostOfficeService = Depends(get_post_office_service)
):
    forbid_extra_query(request)
    return [PostOfficeOut.model_validate(o) for o in svc.list()]


@router.get("/{office_id}", response_model=PostOfficeOut, summary="Get a post office")
def get_post_office(
    office_id: int, svc: PostOfficeService = Depends(get_post_office_service)
):
    return PostOfficeOut.model_validate(svc.get(office_id))


@router.patch(
    "/{office_id}",
    response_model=PostOfficeOut,
    summary="Rename a post office; shipment references follow",
)
def rename_post_office(
    office_id: int,
    payload: PostOfficeIn,
    svc: PostOfficeService = Depends(get_post_office_service),
):
    return PostOfficeOut.model_validate(svc.rename(office_id, payload.zip_code))


@router.delete("/{office_id}", summary="Delete a post office with no active shipments")
def delete_post_office(
    office_id: int, svc: PostOfficeService = Depends(get_post_office_service)
):
    svc.delete(office_id)
    return {"message": "Post Office deleted successfully"}
