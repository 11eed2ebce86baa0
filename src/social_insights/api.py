"""FastAPI application exposing the report catalogue."""
import json
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db, init_db
from .reports import REPORTS, ReportConfig, UnknownReportError, run_report
from .scoring import ActivityWeights
from .store import EntityStore, StructuralError
from .validation import validate


app = FastAPI(
    title="Social Insights API",
    description="Engagement, activity and influence reports over a social dataset",
    version="0.1.0"
)


# =============================================================================
# Startup
# =============================================================================

@app.on_event("startup")
async def startup():
    """Initialize database on startup."""
    init_db()


# =============================================================================
# Schemas
# =============================================================================

class ReportSummary(BaseModel):
    """Catalogue entry."""
    name: str
    description: str


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/")
async def root():
    """Health check."""
    return {
        "service": "social-insights",
        "status": "healthy",
        "version": "0.1.0"
    }


@app.get("/reports", response_model=list[ReportSummary])
async def list_reports():
    """List the available reports."""
    return [
        ReportSummary(name=spec.name, description=spec.description)
        for spec in sorted(REPORTS.values(), key=lambda spec: spec.name)
    ]


@app.get("/reports/{name}")
def get_report(
    name: str,
    limit: Optional[int] = None,
    window_days: Optional[int] = None,
    threshold_set: Optional[str] = None,
    weight_posts: Optional[int] = None,
    weight_likes: Optional[int] = None,
    weight_comments: Optional[int] = None,
    strict: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """Run a report. Unset options use the report's defaults."""
    options = {}
    if strict is not None:
        options["strict"] = strict
    if limit is not None:
        options["limit"] = limit
    if window_days is not None:
        options["window_days"] = window_days
    if threshold_set is not None:
        options["threshold_set"] = threshold_set

    weights = (weight_posts, weight_likes, weight_comments)
    try:
        if any(w is not None for w in weights):
            options["weights"] = ActivityWeights(
                posts=weight_posts if weight_posts is not None else 1,
                likes=weight_likes if weight_likes is not None else 1,
                comments=weight_comments if weight_comments is not None else 1,
            )
        config = ReportConfig(**options)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json(include_url=False)))

    try:
        result = run_report(name, db, config)
    except UnknownReportError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StructuralError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": str(e), "relation": e.relation, "column": e.column},
        )

    return result.to_dict()


@app.get("/quality")
def get_quality(strict: Optional[bool] = None, db: Session = Depends(get_db)):
    """Data-quality findings for the current snapshot."""
    if strict is None:
        strict = settings.strict_validation
    try:
        diagnostics = validate(EntityStore.load(db), strict=strict)
    except StructuralError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": str(e), "relation": e.relation, "column": e.column},
        )
    return {
        "findings": diagnostics.findings(),
        "details": diagnostics.to_dict(),
    }
