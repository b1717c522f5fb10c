"""API Dependencies — FastAPI providers for the wired service container.

Invariants:
    - Services are built once in the lifespan and stored on app.state
    - Tests replace get_services via app.dependency_overrides
"""

from fastapi import Request

from finledger.services.service_container import AppServices


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized")
    return services
