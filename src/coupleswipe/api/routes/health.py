"""Health check endpoint."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from coupleswipe.errors import CoupleSwipeError

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Check TMDB connectivity and credentials."""
    try:
        await request.app.state.tmdb.verify_connectivity()
        return {"status": "ok"}
    except CoupleSwipeError as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "error": e.message},
        )
