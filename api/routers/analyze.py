"""POST /api/analyze and /api/anomalies — AI summaries of log entries."""

import asyncio
import os

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.ai_analysis import analyze_logs, detect_anomalies
from api.errors import ValidationError
from api.schemas import AiLogsRequest, AiResultResponse

router = APIRouter(prefix="/api", tags=["analyze"])
limiter = Limiter(key_func=get_remote_address)

AI_RATE_LIMIT = os.getenv("AI_RATE_LIMIT", "10/minute")


@router.post("/analyze", response_model=AiResultResponse)
@limiter.limit(AI_RATE_LIMIT)
async def analyze(request: Request, req: AiLogsRequest) -> AiResultResponse:
    if not req.logs:
        raise ValidationError("No logs provided")
    return AiResultResponse(result=await asyncio.to_thread(analyze_logs, req.logs))


@router.post("/anomalies", response_model=AiResultResponse)
@limiter.limit(AI_RATE_LIMIT)
async def anomalies(request: Request, req: AiLogsRequest) -> AiResultResponse:
    if not req.logs:
        raise ValidationError("No logs provided")
    return AiResultResponse(result=await asyncio.to_thread(detect_anomalies, req.logs))
