from fastapi import APIRouter, Depends

from pulse.dependencies import get_scheduler, require_cron_secret
from pulse.schemas.cron import CheckRunResponse, ServiceRunResultResponse
from pulse.services.scheduler import CheckScheduler, RunSummary

router = APIRouter()


def _to_response(summary: RunSummary) -> CheckRunResponse:
    return CheckRunResponse(
        message=summary.message,
        checked=summary.checked,
        results=[ServiceRunResultResponse.model_validate(r) for r in summary.results],
        duration=summary.duration_ms,
    )


@router.api_route(
    "/api/cron/check",
    methods=["GET", "POST"],
    dependencies=[Depends(require_cron_secret)],
)
async def run_checks(scheduler: CheckScheduler = Depends(get_scheduler)) -> CheckRunResponse:
    """Run one scheduling pass over the due services."""
    summary = await scheduler.run_pass()
    return _to_response(summary)
