"""Health check endpoint for monitoring service status."""

from starlette.requests import Request
from starlette.responses import JSONResponse

from dht_exporter.lib.gauges import GaugeState
from dht_exporter.lib.lifecycle import Lifecycle, LifecycleState


async def health_check(request: Request) -> JSONResponse:
    """Return health status of the exporter and its sensor."""
    gauges: GaugeState = request.app.state.gauges
    lifecycle: Lifecycle = request.app.state.lifecycle
    stale_after_sec: float = request.app.state.stale_after_sec

    snapshot = gauges.snapshot()
    age = gauges.seconds_since_last_success()
    sensor_ok = snapshot.successes > 0 and age <= stale_after_sec
    is_healthy = lifecycle.state is LifecycleState.RUNNING and sensor_ok

    return JSONResponse(
        {
            "status": "healthy" if is_healthy else "unhealthy",
            "lifecycle": lifecycle.state.value,
            "checks": {
                "sensor": {
                    "ok": sensor_ok,
                    "seconds_since_last_success": round(age, 3),
                    "last_reading": (
                        snapshot.timestamp.isoformat() if snapshot.timestamp else None
                    ),
                    "reads": snapshot.successes,
                    "read_errors": snapshot.read_errors,
                },
            },
        },
        status_code=200 if is_healthy else 503,
    )
