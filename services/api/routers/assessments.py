# services/api/routers/assessments.py
from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse

from adapters import create_backend
from adapters.base import AssessmentBackend
from core.errors import AssessmentError
from core.submission import AssessmentSubmitter
from schemas.assessment import SubmissionError, SubmissionRequest, SubmissionResponse
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assessments", tags=["assessments"])


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """'Bearer abc' -> 'abc'; anything else -> None."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# ---- DI helpers (overridden in tests) ----
def get_backend(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> AssessmentBackend:
    return create_backend(settings, access_token=bearer_token(authorization))


Backend = Annotated[AssessmentBackend, Depends(get_backend)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def error_response(exc: AssessmentError) -> JSONResponse:
    body = SubmissionError(error=str(exc), code=exc.code)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True))


async def assessment_error_handler(request, exc: AssessmentError) -> JSONResponse:
    """Registered on the app so failures while building the backend keep the same shape."""
    logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc, exc.code)
    return error_response(exc)


@router.post(
    "/submit",
    response_model=SubmissionResponse,
    response_model_by_alias=True,
    responses={
        400: {"model": SubmissionError},
        401: {"model": SubmissionError},
        403: {"model": SubmissionError},
        404: {"model": SubmissionError},
        409: {"model": SubmissionError},
        502: {"model": SubmissionError},
    },
)
def submit_assessment(body: SubmissionRequest, backend: Backend, settings: AppSettings):
    """
    Write one assessment worksheet.

    Partial asset failures still return 200 with `failedUploads` filled in;
    anything that prevents the worksheet from being written returns
    `{success: false, error, code}`.
    """
    try:
        result = AssessmentSubmitter(backend, settings).submit(body)
    except AssessmentError as e:
        logger.warning("Assessment submission failed: %s (%s)", e, e.code)
        return error_response(e)
    except Exception as e:
        logger.error(f"Unexpected error submitting assessment: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=SubmissionError(error=f"Failed to submit assessment: {e}", code="INTERNAL_ERROR").model_dump(
                by_alias=True
            ),
        )
    return result.to_response()


@router.get("/connection")
def test_connection(backend: Backend):
    """Spreadsheet title and tabs plus Drive reachability."""
    try:
        info = backend.check_connection()
    except AssessmentError as e:
        logger.warning("Connection test failed: %s (%s)", e, e.code)
        return error_response(e)
    return {"success": True, **info}
