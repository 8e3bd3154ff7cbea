import logging

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.schemas.scoring import (
    AnalysisResponse,
    CompositeRequest,
    CompositeResponse,
    ExplanationRequest,
    ExplanationResponse,
    ScoreRowsRequest,
)
from app.services.composite import compute_dqs
from app.services.explanation import generate_explanation
from app.services.ingest import CSVParseError, parse_csv_rows, validate_upload
from app.services.metadata import analyze_rows

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scoring"])


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_csv(file: UploadFile = File(...)):
    """Upload a CSV file and score it. Rows are scored in memory and never stored."""
    validation = validate_upload(file)
    if not validation["valid"]:
        raise HTTPException(status_code=400, detail=validation["error"])

    data = await file.read()
    try:
        rows = await run_in_threadpool(parse_csv_rows, data)
    except CSVParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = await run_in_threadpool(analyze_rows, rows)
    logger.info(
        "Analyzed %s: %d rows, %d columns, DQS=%d",
        file.filename,
        result["metadata"]["row_count"],
        result["metadata"]["column_count"],
        result["DQS"],
    )
    return result


@router.post("/score", response_model=AnalysisResponse)
def score_rows(body: ScoreRowsRequest):
    """Score rows that were already parsed by the caller."""
    if not body.rows:
        raise HTTPException(status_code=400, detail="At least one row is required")

    weights = body.weights.configured() if body.weights else None
    return analyze_rows(body.rows, weights=weights)


@router.post("/dqs", response_model=CompositeResponse)
def composite_score(body: CompositeRequest):
    """Combine existing dimension scores into a DQS with optional custom weights."""
    weights = body.weights.configured() if body.weights else None
    return compute_dqs(body.dimensions, weights).to_dict()


@router.post("/explain", response_model=ExplanationResponse)
def explain_scores(body: ExplanationRequest):
    """Explain a scoring result. Only scores and dataset metadata reach the LLM."""
    dimensions = body.dimensions.present()
    scores = list(dimensions.values()) + [body.DQS]
    if any(score < 0 or score > 100 for score in scores):
        raise HTTPException(status_code=400, detail="All scores must be between 0 and 100.")

    metadata = body.metadata.model_dump() if body.metadata else None
    return generate_explanation(dimensions, body.DQS, metadata)
