"""FastAPI backend for the bet client."""

from __future__ import annotations

import datetime as dt
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from attendbet.api.schemas import (
    AbsencesResponse,
    BetCreateRequest,
    DayEditRequest,
    DayRegisterRequest,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    IsoDate,
    SummaryResponse,
)
from attendbet.config import configure_logging, get_settings
from attendbet.errors import LedgerError
from attendbet.ledger import (
    compute_absences,
    delete_day,
    edit_day,
    participants_over_limit,
    register_day,
    summarize,
    validate_new_bet,
)
from attendbet.models import Bet, BetDraft
from attendbet.storage.repository import JsonBetRepository

log = structlog.get_logger(__name__)

# Set by run_api() so the app built by uvicorn picks the same profile.
_config_profile: str | None = None
_repository: JsonBetRepository | None = None


def get_repository() -> JsonBetRepository:
    global _repository
    if _repository is None:
        _repository = JsonBetRepository(get_settings(_config_profile).data_dir)
    return _repository


def get_today() -> dt.date:
    """Local naive calendar date; every date rule is evaluated against this."""
    return dt.date.today()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings(_config_profile)
    configure_logging(settings)
    log.info("api_starting", data_dir=settings.data_dir)
    yield


app = FastAPI(title="AttendBet API", version="0.1.0", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

_ERRORS = {
    400: {"description": "Rejected by ledger validation", "model": ErrorResponse},
    404: {"description": "Bet or day not found", "model": ErrorResponse},
}


def _error_json(code: str, message: str, status_code: int = 404, context: dict | None = None) -> JSONResponse:
    """Return consistent error JSON: { detail, code, context }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code, "context": context or {}},
    )


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    log.warning("ledger_rejected", path=request.url.path, code=exc.code, detail=exc.message)
    return _error_json(exc.code, exc.message, exc.status_code, exc.context)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/bets", response_model=list[Bet])
def bets_list(repo: JsonBetRepository = Depends(get_repository)) -> list[Bet]:
    """All bets, most recent first."""
    return repo.list()


@app.post("/bets", response_model=Bet, status_code=201, responses=_ERRORS)
def bet_create(
    body: BetCreateRequest,
    repo: JsonBetRepository = Depends(get_repository),
    today: dt.date = Depends(get_today),
) -> Bet:
    draft = validate_new_bet(BetDraft(**body.model_dump()), today)
    return repo.create(draft)


@app.get("/bets/{bet_id}", response_model=Bet, responses=_ERRORS)
def bet_detail(bet_id: int, repo: JsonBetRepository = Depends(get_repository)) -> Bet:
    return repo.get(bet_id)


@app.delete("/bets/{bet_id}", response_model=DeleteResponse, responses=_ERRORS)
def bet_delete(bet_id: int, repo: JsonBetRepository = Depends(get_repository)) -> DeleteResponse:
    repo.delete(bet_id)
    return DeleteResponse(success=True)


@app.post("/bets/{bet_id}/days", response_model=Bet, responses=_ERRORS)
def day_register(
    bet_id: int,
    body: DayRegisterRequest,
    repo: JsonBetRepository = Depends(get_repository),
    today: dt.date = Depends(get_today),
) -> Bet:
    """Register a day. Later dates are refused while an earlier one is unrecorded."""
    bet = repo.update(bet_id, lambda b: register_day(b, body.date, body.attendance, today, edit=body.edit))
    log.info("day_registered", bet_id=bet_id, date=body.date.isoformat(), edit=body.edit)
    return bet


@app.put("/bets/{bet_id}/days/{day}", response_model=Bet, responses=_ERRORS)
def day_edit(
    bet_id: int,
    day: IsoDate,
    body: DayEditRequest,
    repo: JsonBetRepository = Depends(get_repository),
    today: dt.date = Depends(get_today),
) -> Bet:
    bet = repo.update(bet_id, lambda b: edit_day(b, day, body.attendance, today))
    log.info("day_edited", bet_id=bet_id, date=day.isoformat())
    return bet


@app.delete("/bets/{bet_id}/days/{day}", response_model=Bet, responses=_ERRORS)
def day_delete(bet_id: int, day: IsoDate, repo: JsonBetRepository = Depends(get_repository)) -> Bet:
    """Remove a day's record. Unknown dates are a no-op."""
    bet = repo.update(bet_id, lambda b: delete_day(b, day))
    log.info("day_deleted", bet_id=bet_id, date=day.isoformat())
    return bet


@app.get("/bets/{bet_id}/absences", response_model=AbsencesResponse, responses=_ERRORS)
def bet_absences(bet_id: int, repo: JsonBetRepository = Depends(get_repository)) -> AbsencesResponse:
    bet = repo.get(bet_id)
    lost = participants_over_limit(bet)
    return AbsencesResponse(
        bet_id=bet.id,
        absence_limit=bet.absence_limit,
        absences=compute_absences(bet),
        over_limit=[p for p in bet.participants if p in lost],
    )


@app.get("/bets/{bet_id}/summary", response_model=SummaryResponse, responses=_ERRORS)
def bet_summary(
    bet_id: int,
    repo: JsonBetRepository = Depends(get_repository),
    today: dt.date = Depends(get_today),
) -> SummaryResponse:
    """Standings plus the full-period grid (null = unrecorded date)."""
    return SummaryResponse.from_summary(summarize(repo.get(bet_id), today))


def run_api(
    host: str | None = None,
    port: int | None = None,
    profile: str | None = None,
    data_dir: str | None = None,
) -> None:
    global _config_profile, _repository
    _config_profile = profile
    if data_dir:
        _repository = JsonBetRepository(data_dir)
    settings = get_settings(profile)
    import uvicorn
    uvicorn.run(
        "attendbet.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=False,
    )
