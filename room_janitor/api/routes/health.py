# room_janitor/api/routes/health.py

from fastapi import APIRouter, Response

router = APIRouter()


@router.get("/health")
async def health() -> Response:
    """
    Liveness probe.

    Always 200 with an empty body while the process is up. It does not
    look at the polling loop; a sweep blocked on a slow API call is still
    a live process.
    """
    return Response(status_code=200)
