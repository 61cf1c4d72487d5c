"""
Dashboard Routes

Endpoints behind the analytics view: submit a website (streamed), refresh
panels, read state, chart datasets, overview text and CSV export.
All endpoints require an authenticated session.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response, StreamingResponse

from models.schemas import AnalyzeRequest, Session
from src.controllers.dashboard_controller import (
    SnapshotMissing,
    analysis_events,
    get_dashboard_state,
    overview,
    refresh_all,
    refresh_category,
    validate_website
)
from src.controllers.session_guard import require_session
from src.utils.chart_data import build_chart_datasets
from src.utils.report_generator import generate_csv_report
from utils.helpers import extract_domain_from_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["Analytics"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no"
}


def emit(event: dict) -> str:
    """Format an event as SSE. The double newline makes browsers flush it immediately."""
    return f"data: {json.dumps(event)}\n\n"


# ============================================================================
# Submission
# ============================================================================

@router.post("/analyze")
async def analyze_website(request: AnalyzeRequest, session: Session = Depends(require_session)):
    """
    Analyze a website and stream progress.

    A blank website is rejected with 400 before anything starts.

    Events (SSE, `data: {step, status, message, data}`):
    - snapshot: started / completed (with the snapshot)
    - category: one per settled panel (ready / ready_with_fallback)
    - complete: with last_updated, or error if market data failed

    Example:
    ```
    POST /analytics/analyze
    {"website": "https://example.com"}
    ```
    """
    state = get_dashboard_state(session.user.user_id)
    website = validate_website(state, request.website)

    logger.info(f"Analysis requested by {session.user.user_id} for {website}")

    async def event_stream():
        try:
            async for event in analysis_events(state, website):
                yield emit(event)
        except Exception as e:
            logger.error(f"Error streaming analysis for {website}: {e}", exc_info=True)
            yield emit({"step": "error", "status": "failed", "message": str(e), "data": {}})

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS
    )


# ============================================================================
# Refresh
# ============================================================================

@router.post("/refresh/{category}")
async def refresh_single_category(category: str, session: Session = Depends(require_session)):
    """Re-run one category against the current snapshot."""
    state = get_dashboard_state(session.user.user_id)

    try:
        return await refresh_category(state, category)
    except SnapshotMissing as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error refreshing {category}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error refreshing {category}: {str(e)}"
        )


@router.post("/refresh-all")
async def refresh_all_categories(session: Session = Depends(require_session)):
    """Regenerate the snapshot and all four panels for the current website."""
    state = get_dashboard_state(session.user.user_id)

    try:
        return await refresh_all(state)
    except SnapshotMissing as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error refreshing analysis: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error refreshing analysis: {str(e)}"
        )


# ============================================================================
# Reads
# ============================================================================

@router.get("")
async def analytics_view(session: Session = Depends(require_session)):
    """The analytics view for the signed-in user."""
    return {
        "view": "analytics",
        "user": session.user.model_dump(),
        "state": get_dashboard_state(session.user.user_id).to_dict()
    }


@router.get("/state")
async def get_state(session: Session = Depends(require_session)):
    """Full dashboard state including per-category loading flags."""
    return get_dashboard_state(session.user.user_id).to_dict()


@router.get("/charts")
async def get_charts(session: Session = Depends(require_session)):
    """Chart.js datasets for the current snapshot."""
    state = get_dashboard_state(session.user.user_id)

    if state.snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No market data yet. Analyze a website first."
        )

    return {
        "website": state.website,
        "charts": build_chart_datasets(state.snapshot)
    }


@router.get("/overview")
async def get_overview(session: Session = Depends(require_session)):
    """General AI market analysis of the current snapshot."""
    state = get_dashboard_state(session.user.user_id)

    try:
        return await overview(state)
    except SnapshotMissing as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating overview: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generating overview: {str(e)}"
        )


@router.get("/report.csv")
async def download_report(session: Session = Depends(require_session)):
    """CSV export of the snapshot and insight panels."""
    state = get_dashboard_state(session.user.user_id)

    if state.snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No market data yet. Analyze a website first."
        )

    try:
        content = generate_csv_report(state)
    except Exception as e:
        logger.error(f"Error generating report: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generating report: {str(e)}"
        )

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="market-insights-{extract_domain_from_url(state.website)}.csv"'}
    )
