"""Prometheus scrape endpoint."""

from prometheus_client.exposition import choose_encoder
from prometheus_client.registry import CollectorRegistry
from starlette.requests import Request
from starlette.responses import Response


async def metrics(request: Request) -> Response:
    """Serialize the current gauge state in the format the scraper accepts."""
    registry: CollectorRegistry = request.app.state.registry
    encoder, content_type = choose_encoder(request.headers.get("accept", ""))
    return Response(encoder(registry), media_type=content_type)
