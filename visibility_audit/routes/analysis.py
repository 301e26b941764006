"""Analysis API endpoints."""
from fastapi import APIRouter, HTTPException, Path

from ..agents import orchestrator, single_page_service
from ..models import (
    AnalysisRequest,
    MultiPageAnalysisRequest,
    PageErrorType,
    Session,
    SinglePageAnalysisResponse,
    StartSessionResponse,
)
from ..services import InvalidPageListError, PageAnalysisError
from ..utils.logger import logger

router = APIRouter(prefix="/api", tags=["analysis"])

ERROR_STATUS_CODES = {
    PageErrorType.TIMEOUT: 504,
    PageErrorType.NETWORK: 502,
    PageErrorType.ACCESS_DENIED: 403,
    PageErrorType.NOT_FOUND: 404,
    PageErrorType.QUOTA: 429,
    PageErrorType.OTHER: 500,
}


@router.post("/analyze-multi-page", response_model=StartSessionResponse)
async def start_multi_page_analysis(request: MultiPageAnalysisRequest) -> StartSessionResponse:
    """Start a multi-page analysis and return its session ID immediately.

    Args:
        request: Domain and ordered page paths

    Returns:
        Session ID and page count
    """
    try:
        domain = str(request.domain)
        session_id = await orchestrator.start_session(domain, request.page_list)

        return StartSessionResponse(
            session_id=session_id,
            total_pages=len(request.page_list),
            status="started",
            message="Multi-page analysis started successfully",
        )

    except InvalidPageListError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error starting multi-page analysis: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/analyze-multi-page/{session_id}", response_model=Session)
async def get_multi_page_analysis(
    session_id: str = Path(..., description="Session identifier")
) -> Session:
    """Get the current snapshot of a multi-page analysis.

    Args:
        session_id: Session identifier

    Returns:
        Session snapshot
    """
    snapshot = orchestrator.get_snapshot(session_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return snapshot


@router.post("/analyze", response_model=SinglePageAnalysisResponse)
async def analyze_page(request: AnalysisRequest) -> SinglePageAnalysisResponse:
    """Analyze a single page, serving a cached result when one is fresh.

    Args:
        request: URL and cache preference

    Returns:
        Analysis, weighted score and cache flag
    """
    try:
        logger.info(f"Analyzing single page: {request.url}")
        return await single_page_service.analyze(
            str(request.url), bypass_cache=request.bypass_cache
        )

    except PageAnalysisError as e:
        raise HTTPException(status_code=ERROR_STATUS_CODES[e.error_type], detail=e.message)
    except Exception as e:
        logger.error(f"Error analyzing {request.url}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
