from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    rid = getattr(request.state, "request_id", None)
    store = type(request.app.state.ledger.store).__name__
    return {"status": "ok", "store": store, "request_id": rid}
