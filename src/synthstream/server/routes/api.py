"""HTTP endpoints: health check and formula dry-run."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from synthstream.exceptions import ParseError, UnsupportedOperatorError
from synthstream.formula.dependencies import dependency_set
from synthstream.formula.parser import ensure_supported, parse_stream_request

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    return {"ok": True}


@router.get("/api/formula")
async def check_formula(stream: str = Query(..., description="<formula>@<interval>")) -> JSONResponse:
    """Parse a stream request without subscribing; report what it would subscribe to."""
    try:
        formula = parse_stream_request(stream)
        ensure_supported(formula.expression)
    except (ParseError, UnsupportedOperatorError) as e:
        return JSONResponse(
            status_code=400,
            content={"error": {"type": type(e).__name__, "reason": e.reason}},
        )

    symbols = dependency_set(formula.expression)
    return JSONResponse(
        content={
            "stream": formula.text,
            "interval": formula.candle_interval,
            "dependencies": symbols,
            "params": formula.subscription_params(symbols),
        }
    )
