from fastapi import APIRouter, Request

from packages.tasks.models.schemas.invocation import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    # No logging - k8s probes may hit this every few seconds
    settings = request.app.state.context.settings
    return HealthResponse(status="healthy", version=settings.api_version)
