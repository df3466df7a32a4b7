from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", tags=["health"])
def health(request: Request):
    db_ok = request.app.state.db.is_healthy()
    return {"status": "ok" if db_ok else "degraded", "db": db_ok}
