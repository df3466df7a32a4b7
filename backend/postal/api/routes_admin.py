from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from postal.db import get_db
from postal.services.reconcile_service import ReconciliationService

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/reconcile", summary="Repair shipment references to renamed zip codes")
def reconcile(db: Session = Depends(get_db)):
    return ReconciliationService(db).sweep()
