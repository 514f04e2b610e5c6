from fastapi import APIRouter, Depends

from ....application.use_cases.advance_catalog import SetCatalogCursor
from ....application.use_cases.leaderboard import ResetScore
from ....infrastructure.cache import Cache
from ....infrastructure.repositories import CatalogRepository, ProgressRepository
from ..authz import require_repair_capability
from ..deps import get_cache, get_catalogs, get_store
from ..schemas import CursorResp, CursorSetReq, ScoreResp

# Ремонтные операции в обход guard-а; только с capability progress:repair
router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_repair_capability)])

@router.put("/users/{user_id}/catalogs/{catalog_name}/cursor", response_model=CursorResp)
def set_cursor(
    user_id: str,
    catalog_name: str,
    payload: CursorSetReq,
    store: ProgressRepository = Depends(get_store),
    catalogs: CatalogRepository = Depends(get_catalogs),
):
    index = SetCatalogCursor(store=store, catalogs=catalogs).execute(user_id, catalog_name, payload.item_index)
    return CursorResp(catalog=catalog_name, item_index=index)

@router.post("/users/{user_id}/score/reset", response_model=ScoreResp)
def reset_score(
    user_id: str,
    store: ProgressRepository = Depends(get_store),
    cache: Cache = Depends(get_cache),
):
    ResetScore(store=store, cache=cache).execute(user_id)
    return ScoreResp(total_score=0)
