from fastapi import APIRouter, HTTPException, Request

from ...schemas.common import HealthOut

router = APIRouter()


@router.get("/api/health", response_model=HealthOut)
async def health(request: Request) -> HealthOut:
    if await request.body():
        raise HTTPException(status_code=400, detail="Request body not allowed")
    return HealthOut(message="Hello World!", status="success")
