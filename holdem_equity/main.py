"""FastAPI application — REST + WebSocket endpoints for equity and outs."""

import asyncio
import logging
import random
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.concurrency import run_in_threadpool

from holdem_equity import config
from holdem_equity.cards import parse_cards
from holdem_equity.errors import ComputationFailure, InvalidInput
from holdem_equity.evaluator import evaluate
from holdem_equity.models import (
    EquityRequest,
    EquityResult,
    ErrorResponse,
    EvaluateRequest,
    HandSummary,
    OutsEstimate,
    OutsRequest,
    PotOddsRequest,
    PotOddsResponse,
)
from holdem_equity.odds import expected_value, is_call_profitable, pot_odds
from holdem_equity.outs import classify_outs, with_estimates
from holdem_equity.simulator import simulate, validate_request
from holdem_equity.worker import simulation_pool
from holdem_equity.ws_manager import manager

logger = logging.getLogger(__name__)
logging.getLogger("holdem_equity").setLevel(config.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Background simulations share one thread pool for the app's lifetime
    simulation_pool.start()
    yield
    simulation_pool.stop()


app = FastAPI(title="Hold'em Equity API", lifespan=lifespan)

# ---------- Rate Limiting ----------

limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.RATE_LIMIT_ENABLED,
)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please slow down."},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- REST endpoints ----------


@app.get("/api/health")
async def health():
    return {"ok": True, "sessions": manager.session_count}


_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


@app.post("/api/equity", response_model=EquityResult, responses=_ERRORS)
@limiter.limit("30/minute")
async def equity(request: Request, req: EquityRequest):
    """Monte Carlo equity against random (or partly known) opponent hands."""
    try:
        hole, board, opponents = req.hole, req.board, req.opponents
        validate_request(hole, board, req.num_opponents, req.trials, opponents)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return await run_in_threadpool(
            simulate,
            hole,
            board,
            req.num_opponents,
            req.trials,
            rng=random.Random(req.seed),
            opponent_hands=opponents,
        )
    except Exception as e:
        logger.exception("Equity calculation failed")
        failure = ComputationFailure(f"Equity calculation failed: {e}")
        raise HTTPException(status_code=500, detail=str(failure)) from e


@app.post("/api/outs", response_model=list[OutsEstimate])
@limiter.limit("60/minute")
async def outs(request: Request, req: OutsRequest):
    """Draws, outs and rule-of-2-and-4 estimates for a flop or turn."""
    try:
        hole = parse_cards(req.hole_cards)
        board = parse_cards(req.community_cards)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    known = hole + board
    if len(set(known)) != len(known):
        raise HTTPException(status_code=400, detail="Duplicate cards detected")
    return with_estimates(classify_outs(hole, board))


@app.post("/api/evaluate", response_model=HandSummary)
@limiter.limit("60/minute")
async def evaluate_hand(request: Request, req: EvaluateRequest):
    """Best five-card hand among 5-7 cards."""
    try:
        cards = parse_cards(req.cards)
        if len(set(cards)) != len(cards):
            raise InvalidInput("Duplicate cards detected")
        hand = evaluate(cards)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    return HandSummary(
        category=hand.category.tag,
        name=hand.name,
        description=hand.description,
        value=hand.value,
        cards=[str(c) for c in hand.cards],
        display=[c.display() for c in hand.cards],
    )


@app.post("/api/pot-odds", response_model=PotOddsResponse)
@limiter.limit("60/minute")
async def pot_odds_endpoint(request: Request, req: PotOddsRequest):
    try:
        odds = pot_odds(req.pot, req.to_call)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    if req.win_probability is None:
        return PotOddsResponse(pot_odds=odds)
    return PotOddsResponse(
        pot_odds=odds,
        profitable=is_call_profitable(odds, req.win_probability),
        expected_value=expected_value(req.win_probability, req.pot, req.to_call),
    )


# ---------- WebSocket ----------


@app.websocket("/ws/equity")
async def equity_socket(ws: WebSocket):
    session = await manager.connect(ws)
    sender = asyncio.create_task(session.pump())

    try:
        while True:
            raw = await ws.receive_text()
            session.handle_message(raw)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(session)
        try:
            await asyncio.wait_for(sender, timeout=1.0)
        except asyncio.TimeoutError:
            logger.debug("Sender for session %s did not drain", session.session_id)
