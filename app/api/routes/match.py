from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from app.ai.analyzer import CandidateAnalyzer
from app.api.dependencies import get_analyzer
from app.core.config import load_weights
from app.core.errors import ConfigError
from app.core.match_scorer import match, match_many
from app.core.schemas import JobRequirement, MatchRequest, MatchResult, MatchWeights, ParsedResume

router = APIRouter(tags=["match"])


class RankRequest(BaseModel):
    resumes: List[ParsedResume] = Field(default_factory=list)
    job: JobRequirement
    weights: Optional[MatchWeights] = None
    preset: Optional[str] = None


def _resolve_weights(weights: Optional[MatchWeights], preset: Optional[str]) -> Optional[MatchWeights]:
    if weights is not None:
        return weights
    if preset is None:
        return None
    try:
        return load_weights(preset)
    except ConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post(
    "/match",
    response_model=MatchResult,
    summary="Match Resume",
    description="Score a parsed resume against a job requirement (0-100) with a per-dimension breakdown.",
    responses={422: {"description": "Invalid request body or unknown weight preset"}},
)
async def match_resume(
    payload: MatchRequest,
    analyzer: Optional[CandidateAnalyzer] = Depends(get_analyzer),
):
    weights = _resolve_weights(payload.weights, payload.preset)
    return await match(payload.resume, payload.job, weights=weights, analyzer=analyzer)


@router.post(
    "/match/rank",
    response_model=List[MatchResult],
    summary="Rank Candidates",
    description="Score several parsed resumes against one job; results are ordered best first.",
)
async def rank_resumes(
    payload: RankRequest,
    analyzer: Optional[CandidateAnalyzer] = Depends(get_analyzer),
):
    weights = _resolve_weights(payload.weights, payload.preset)
    return await match_many(payload.resumes, payload.job, weights=weights, analyzer=analyzer)
