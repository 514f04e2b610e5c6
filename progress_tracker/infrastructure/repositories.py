import functools
from datetime import date

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from .models import CatalogCounterORM, CatalogItemORM, CatalogORM, UserProgressORM
from ..application.ports import ICatalogRepository, IProgressStore
from ..domain.entities import Catalog, CatalogItem, Streak, UserProgress
from ..domain.errors import ConflictAbandoned, NotFound, ProgressError, StoreUnavailable

logger = structlog.get_logger()


def store_call(fn):
    """Turn connectivity failures into StoreUnavailable and reset the session."""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            self.db.rollback()
            logger.warning("store_unavailable", op=fn.__name__, error=str(e.orig or e))
            raise StoreUnavailable("progress store unavailable") from e
    return wrapper


def to_domain(row: UserProgressORM, counters: dict[str, int]) -> UserProgress:
    return UserProgress(
        user_id=row.user_id,
        streak=Streak(row.streak_last_date, row.streak_run_length),
        total_score=row.total_score,
        focus_seconds_today=row.focus_seconds_today,
        catalog_counters=counters,
    )


class ProgressRepository(IProgressStore):
    def __init__(self, db: Session): self.db = db

    @store_call
    def ensure_user(self, user_id: str) -> bool:
        """Create the user's row if missing. Returns True when it was created."""
        if self.db.get(UserProgressORM, user_id) is not None:
            return False
        self.db.add(UserProgressORM(user_id=user_id, streak_run_length=0, total_score=0, focus_seconds_today=0))
        try:
            self.db.commit()
        except IntegrityError:
            # создан параллельным запросом
            self.db.rollback()
            return False
        return True

    @store_call
    def get(self, user_id: str) -> UserProgress | None:
        row = self.db.get(UserProgressORM, user_id, populate_existing=True)
        if row is None:
            return None
        counters = self.db.execute(
            select(CatalogCounterORM.catalog_name, CatalogCounterORM.completed)
            .where(CatalogCounterORM.user_id == user_id)
            .order_by(CatalogCounterORM.catalog_name)
        ).all()
        return to_domain(row, {name: completed for name, completed in counters})

    # --- catalog counters

    @store_call
    def get_counter(self, user_id: str, catalog_name: str) -> int:
        value = self.db.execute(
            select(CatalogCounterORM.completed).where(
                CatalogCounterORM.user_id == user_id,
                CatalogCounterORM.catalog_name == catalog_name,
            )
        ).scalar_one_or_none()
        return value or 0

    @store_call
    def compare_and_set_counter(self, user_id: str, catalog_name: str, expected: int, value: int) -> None:
        result = self.db.execute(
            update(CatalogCounterORM)
            .where(
                CatalogCounterORM.user_id == user_id,
                CatalogCounterORM.catalog_name == catalog_name,
                CatalogCounterORM.completed == expected,
            )
            .values(completed=value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            self.db.commit()
            return
        if expected == 0:
            # отсутствующая строка означает 0; unique constraint играет роль guard
            self.db.add(CatalogCounterORM(user_id=user_id, catalog_name=catalog_name, completed=value))
            try:
                self.db.commit()
                return
            except IntegrityError:
                self.db.rollback()
        else:
            self.db.rollback()
        raise ConflictAbandoned(f"counter {catalog_name!r} for {user_id!r} is no longer {expected}")

    @store_call
    def set_counter(self, user_id: str, catalog_name: str, value: int) -> None:
        stmt = (
            update(CatalogCounterORM)
            .where(
                CatalogCounterORM.user_id == user_id,
                CatalogCounterORM.catalog_name == catalog_name,
            )
            .values(completed=value)
            .execution_options(synchronize_session=False)
        )
        if self.db.execute(stmt).rowcount == 0:
            self.db.add(CatalogCounterORM(user_id=user_id, catalog_name=catalog_name, completed=value))
            try:
                self.db.commit()
                return
            except IntegrityError:
                # строку вставил параллельный запрос; перезаписываем её
                self.db.rollback()
                self.db.execute(stmt)
        self.db.commit()

    # --- streak

    @store_call
    def compare_and_set_streak(
        self, user_id: str, expected_last_date: date | None, last_date: date, run_length: int
    ) -> None:
        if expected_last_date is None:
            guard = UserProgressORM.streak_last_date.is_(None)
        else:
            guard = UserProgressORM.streak_last_date == expected_last_date
        result = self.db.execute(
            update(UserProgressORM)
            .where(UserProgressORM.user_id == user_id, guard)
            .values(streak_last_date=last_date, streak_run_length=run_length)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise ConflictAbandoned(f"streak for {user_id!r} changed since it was read")
        self.db.commit()

    # --- focus

    @store_call
    def get_focus(self, user_id: str) -> int:
        value = self.db.execute(
            select(UserProgressORM.focus_seconds_today).where(UserProgressORM.user_id == user_id)
        ).scalar_one_or_none()
        return value or 0

    @store_call
    def raise_focus(self, user_id: str, seconds: int) -> tuple[int, bool]:
        """Store ``seconds`` only if it exceeds the stored value.

        Returns the stored value and whether this call wrote it.
        """
        result = self.db.execute(
            update(UserProgressORM)
            .where(
                UserProgressORM.user_id == user_id,
                UserProgressORM.focus_seconds_today < seconds,
            )
            .values(focus_seconds_today=seconds)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return self.get_focus(user_id), result.rowcount == 1

    # --- score

    @store_call
    def add_points(self, user_id: str, points: int) -> int:
        result = self.db.execute(
            update(UserProgressORM)
            .where(UserProgressORM.user_id == user_id)
            .values(total_score=UserProgressORM.total_score + points)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise NotFound(f"no progress for user {user_id!r}")
        self.db.commit()
        return self.db.execute(
            select(UserProgressORM.total_score).where(UserProgressORM.user_id == user_id)
        ).scalar_one()

    @store_call
    def reset_score(self, user_id: str) -> None:
        result = self.db.execute(
            update(UserProgressORM)
            .where(UserProgressORM.user_id == user_id)
            .values(total_score=0)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise NotFound(f"no progress for user {user_id!r}")
        self.db.commit()

    @store_call
    def top_scores(self, limit: int, offset: int) -> list[tuple[str, int]]:
        q = (select(UserProgressORM.user_id, UserProgressORM.total_score)
             .order_by(UserProgressORM.total_score.desc(), UserProgressORM.user_id.asc())
             .limit(limit).offset(offset))
        return [(r[0], r[1]) for r in self.db.execute(q).all()]

    @store_call
    def count_users(self) -> int:
        return self.db.execute(select(func.count(UserProgressORM.user_id))).scalar_one()


class CatalogRepository(ICatalogRepository):
    def __init__(self, db: Session): self.db = db

    def _size(self, name: str) -> int:
        return self.db.execute(
            select(func.count(CatalogItemORM.id)).where(CatalogItemORM.catalog_name == name)
        ).scalar_one()

    @store_call
    def get(self, name: str) -> Catalog | None:
        row = self.db.get(CatalogORM, name)
        if row is None:
            return None
        return Catalog(name=row.name, title=row.title, size=self._size(name))

    @store_call
    def list_all(self) -> list[Catalog]:
        q = (select(CatalogORM.name, CatalogORM.title, func.count(CatalogItemORM.id))
             .outerjoin(CatalogItemORM, CatalogItemORM.catalog_name == CatalogORM.name)
             .group_by(CatalogORM.name, CatalogORM.title)
             .order_by(CatalogORM.name))
        return [Catalog(name=r[0], title=r[1], size=r[2]) for r in self.db.execute(q).all()]

    @store_call
    def create(self, name: str, title: str) -> Catalog:
        self.db.add(CatalogORM(name=name, title=title))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ProgressError(f"catalog {name!r} already exists", status_code=409, error_code="catalog_exists")
        return Catalog(name=name, title=title, size=0)

    @store_call
    def get_item(self, name: str, item_index: int) -> CatalogItem | None:
        row = self.db.execute(
            select(CatalogItemORM).where(
                CatalogItemORM.catalog_name == name,
                CatalogItemORM.item_index == item_index,
            )
        ).scalar_one_or_none()
        if row is None:
            return None
        return CatalogItem(catalog_name=row.catalog_name, item_index=row.item_index, key=row.key, content=row.content)

    @store_call
    def append_item(self, name: str, key: str, content: str | None = None) -> CatalogItem:
        last = self.db.execute(
            select(func.max(CatalogItemORM.item_index)).where(CatalogItemORM.catalog_name == name)
        ).scalar_one_or_none()
        item_index = (last or 0) + 1
        self.db.add(CatalogItemORM(catalog_name=name, item_index=item_index, key=key, content=content))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictAbandoned(f"item {item_index} of {name!r} was appended concurrently")
        return CatalogItem(catalog_name=name, item_index=item_index, key=key, content=content)
