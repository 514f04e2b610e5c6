from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, ForeignKey, Integer, String, Text, TIMESTAMP, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class UserProgressORM(Base):
    __tablename__ = "user_progress"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)  # JWT sub
    streak_last_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    streak_run_length: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0", index=True)
    focus_seconds_today: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"UserProgressORM(user_id={self.user_id!r}, total_score={self.total_score!r})"


class CatalogCounterORM(Base):
    __tablename__ = "catalog_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    catalog_name: Mapped[str] = mapped_column(String(64), nullable=False)
    completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (UniqueConstraint("user_id", "catalog_name", name="uq_user_catalog"),)


class CatalogORM(Base):
    __tablename__ = "catalogs"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"CatalogORM(name={self.name!r})"


class CatalogItemORM(Base):
    __tablename__ = "catalog_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    catalog_name: Mapped[str] = mapped_column(
        ForeignKey("catalogs.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_index: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-based
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("catalog_name", "item_index", name="uq_catalog_item_index"),)

    def __repr__(self) -> str:
        return f"CatalogItemORM(catalog_name={self.catalog_name!r}, item_index={self.item_index!r})"


__all__ = [
    "Base",
    "UserProgressORM",
    "CatalogCounterORM",
    "CatalogORM",
    "CatalogItemORM",
]
