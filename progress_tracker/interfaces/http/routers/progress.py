from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query

from ....application.use_cases.advance_catalog import AdvanceCatalog
from ....application.use_cases.leaderboard import AwardPoints
from ....application.use_cases.reconcile_focus import FlushFocus, ReadFocus
from ....application.use_cases.record_activity import CurrentStreak, RecordActivity
from ....config import settings
from ....domain.errors import Exhausted
from ....infrastructure.cache import Cache
from ....infrastructure.repositories import CatalogRepository, ProgressRepository
from ..authz import get_user_id
from ..deps import get_cache, get_catalogs, get_store, get_today
from ..schemas import (
    ActivityReq, ActivityResp, AdvanceResp, FocusFlushReq, FocusResp,
    PointsReq, ProgressOut, ScoreResp, StreakOut, StreakResp,
)

router = APIRouter(prefix="/api/progress", tags=["progress"])

@router.get("/health")
def health(): return {"status": "ok"}

@router.get("/my", response_model=ProgressOut)
def my_progress(
    user_id: str = Depends(get_user_id),
    store: ProgressRepository = Depends(get_store),
):
    progress = store.get(user_id)
    if progress is None:
        return ProgressOut(user_id=user_id, catalog_counters={}, streak=StreakOut(),
                           total_score=0, focus_seconds_today=0)
    return ProgressOut(
        user_id=progress.user_id,
        catalog_counters=progress.catalog_counters,
        streak=StreakOut(last_active_date=progress.streak.last_active_date,
                         run_length=progress.streak.run_length),
        total_score=progress.total_score,
        focus_seconds_today=progress.focus_seconds_today,
    )

@router.post("/catalogs/{catalog_name}/advance", response_model=AdvanceResp, response_model_exclude_none=True)
def advance(
    catalog_name: str,
    user_id: str = Depends(get_user_id),
    store: ProgressRepository = Depends(get_store),
    catalogs: CatalogRepository = Depends(get_catalogs),
    cache: Cache = Depends(get_cache),
):
    uc = AdvanceCatalog(store=store, catalogs=catalogs, cache=cache)
    try:
        result = uc.execute(user_id, catalog_name)
    except Exhausted:
        # ожидаемое конечное состояние, не ошибка
        return AdvanceResp(exhausted=True)
    return AdvanceResp(item_index=result.item_index, item_key=result.item_key, advanced=result.advanced)

@router.post("/streak/activity", response_model=ActivityResp)
def record_activity(
    payload: ActivityReq | None = None,
    user_id: str = Depends(get_user_id),
    store: ProgressRepository = Depends(get_store),
    cache: Cache = Depends(get_cache),
    server_today: date = Depends(get_today),
):
    today = server_today
    if payload and payload.today:
        # клиентская дата не дальше ACTIVITY_DATE_SKEW_DAYS от серверной
        skew = timedelta(days=settings.ACTIVITY_DATE_SKEW_DAYS)
        if abs(payload.today - server_today) > skew:
            raise HTTPException(status_code=422, detail="today is too far from the server date")
        today = payload.today
    uc = RecordActivity(store=store, cache=cache)
    recorded = uc.execute(user_id, today)
    return ActivityResp(
        run_length=recorded.run_length,
        secured=recorded.secured,
        action=recorded.action.value,
        last_active_date=recorded.last_active_date,
    )

@router.get("/streak", response_model=StreakResp)
def current_streak(
    today: date | None = Query(None),
    user_id: str = Depends(get_user_id),
    store: ProgressRepository = Depends(get_store),
    server_today: date = Depends(get_today),
):
    shown, stored = CurrentStreak(store).execute(user_id, today or server_today)
    return StreakResp(display_value=shown.display_value, at_risk=shown.at_risk,
                      last_active_date=stored.last_active_date)

@router.get("/focus", response_model=FocusResp)
def read_focus(
    user_id: str = Depends(get_user_id),
    store: ProgressRepository = Depends(get_store),
):
    return FocusResp(stored_value=ReadFocus(store).execute(user_id))

@router.post("/focus/flush", response_model=FocusResp)
def flush_focus(
    payload: FocusFlushReq,
    user_id: str = Depends(get_user_id),
    store: ProgressRepository = Depends(get_store),
    cache: Cache = Depends(get_cache),
):
    stored = FlushFocus(store=store, cache=cache).execute(user_id, payload.accumulated_seconds)
    return FocusResp(stored_value=stored)

@router.post("/points", response_model=ScoreResp)
def award_points(
    payload: PointsReq,
    user_id: str = Depends(get_user_id),
    store: ProgressRepository = Depends(get_store),
    cache: Cache = Depends(get_cache),
):
    try:
        total = AwardPoints(store=store, cache=cache).execute(user_id, payload.points)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ScoreResp(total_score=total)
