from fastapi import APIRouter, Depends, Query, Response

from ....application.use_cases.leaderboard import TopN
from ....config import settings
from ....infrastructure.cache import Cache
from ....infrastructure.repositories import ProgressRepository
from ..authz import get_user_id
from ..deps import get_cache, get_store
from ..schemas import LeaderboardEntryOut

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])

@router.get("", response_model=list[LeaderboardEntryOut], dependencies=[Depends(get_user_id)])
def leaderboard(
    response: Response,
    store: ProgressRepository = Depends(get_store),
    cache: Cache = Depends(get_cache),
    limit: int = Query(50, ge=1, le=settings.LEADERBOARD_MAX_LIMIT),
    offset: int = Query(0, ge=0),
):
    uc = TopN(store=store, cache=cache)
    entries = uc.execute(limit, offset)
    total = uc.total()
    # пагинация в заголовках, тело остаётся упорядоченным списком
    response.headers["X-Total-Count"] = str(total)
    response.headers["X-Has-Next"] = "true" if offset + limit < total else "false"
    response.headers["X-Has-Prev"] = "true" if offset > 0 else "false"
    return [LeaderboardEntryOut.model_validate(e) for e in entries]
