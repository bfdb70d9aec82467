"""Tracking ingestion router."""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from codepruner.common.exceptions import BatchValidationError, TenantNotFoundError
from codepruner.common.schemas import ErrorResponse, ValidationErrorResponse
from codepruner.common.security import TenantContext, require_tenant
from codepruner.ingestion.schemas import TrackResponse

router = APIRouter()


def _get_controller():
    from codepruner.deps import get_admission_controller
    return get_admission_controller()


def _parse_body(raw: bytes):
    # JSON null reaches the validator as None and is rejected there.
    try:
        return json.loads(raw)
    except ValueError:
        raise BatchValidationError("Request body must be valid JSON")


@router.post(
    "/track",
    response_model=TrackResponse,
    status_code=202,
    responses={400: {"model": ValidationErrorResponse}},
)
async def track(
    request: Request,
    ctx: TenantContext = Depends(require_tenant),
):
    controller = _get_controller()
    try:
        payload = _parse_body(await request.body())
        result = await controller.admit(ctx.tenant_id, payload)
    except BatchValidationError as e:
        return JSONResponse(
            status_code=400,
            content=ValidationErrorResponse(
                error=e.message, code=e.code, index=e.index, field=e.field,
            ).model_dump(),
        )
    except TenantNotFoundError as e:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(error=e.message, code=e.code).model_dump(),
        )
    return TrackResponse(
        message=f"Accepted {result.count} log(s)",
        count=result.count,
    )
