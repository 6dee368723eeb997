# room_janitor/api/routes/metrics.py
from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter()


@router.get("/metrics")
async def get_metrics(request: Request) -> Response:
    """
    Prometheus scrape endpoint.

    Exposes the registry stored on the app (the default process, platform
    and GC collectors unless a test swaps it out) in the text exposition
    format.
    """
    registry = getattr(request.app.state, "registry", REGISTRY)
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
