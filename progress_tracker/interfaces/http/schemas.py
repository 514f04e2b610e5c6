from datetime import date

from pydantic import BaseModel, Field

class AdvanceResp(BaseModel):
    item_index: int | None = None
    item_key: str | None = None
    advanced: bool = False
    exhausted: bool = False

class ActivityReq(BaseModel):
    today: date | None = None

class ActivityResp(BaseModel):
    run_length: int
    secured: bool
    action: str
    last_active_date: date

class StreakResp(BaseModel):
    display_value: int
    at_risk: bool
    last_active_date: date | None = None

class FocusFlushReq(BaseModel):
    accumulated_seconds: int = Field(ge=0)

class FocusResp(BaseModel):
    stored_value: int

class PointsReq(BaseModel):
    points: int = Field(gt=0)

class ScoreResp(BaseModel):
    total_score: int

class StreakOut(BaseModel):
    last_active_date: date | None = None
    run_length: int = 0

class ProgressOut(BaseModel):
    user_id: str
    catalog_counters: dict[str, int]
    streak: StreakOut
    total_score: int
    focus_seconds_today: int

class LeaderboardEntryOut(BaseModel):
    user_id: str
    total_score: int
    rank: int
    class Config: from_attributes = True

class CatalogCreate(BaseModel):
    name: str = Field(min_length=1, max_length=64, pattern=r"^[a-z0-9_]+$")
    title: str

class CatalogOut(BaseModel):
    name: str
    title: str
    size: int
    class Config: from_attributes = True

class ItemCreate(BaseModel):
    key: str = Field(min_length=1, max_length=255)
    content: str | None = None

class ItemOut(BaseModel):
    catalog_name: str
    item_index: int
    key: str
    content: str | None = None
    class Config: from_attributes = True

class CursorSetReq(BaseModel):
    item_index: int = Field(ge=0)

class CursorResp(BaseModel):
    catalog: str
    item_index: int
