from datetime import date, datetime, timezone

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...infrastructure.cache import Cache
from ...infrastructure.db import get_db
from ...infrastructure.repositories import CatalogRepository, ProgressRepository

def get_cache(request: Request) -> Cache:
    return request.app.state.cache

def get_today() -> date:
    """Текущая дата по UTC; в тестах переопределяется"""
    return datetime.now(timezone.utc).date()

def get_store(db: Session = Depends(get_db)) -> ProgressRepository:
    return ProgressRepository(db)

def get_catalogs(db: Session = Depends(get_db)) -> CatalogRepository:
    return CatalogRepository(db)
