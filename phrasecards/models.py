from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, List


class Slot(BaseModel):
    model_config = ConfigDict(frozen=True)

    jp: str
    en: str


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    no: int
    jp: str = ""
    en: str = ""
    slots: Optional[List[Slot]] = None
    video: str = ""
    lv: int = 1
    note: str = ""
    scene: str = ""


class ReviewState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    interval_ms: int = Field(alias="intervalMs")
    due_at: int = Field(alias="dueAt")


class DailyQuota(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: str
    good_count: int = Field(0, alias="goodCount")
    goal: int = Field(10, gt=0)


class SkippedRow(BaseModel):
    line: int
    reason: str


class CardView(BaseModel):
    no: int
    prompt: str
    answer: str
    shown_answer: Optional[str] = None
    note: Optional[str] = None
    revealed: bool = False
    position: int
    total: int


class BlockProgress(BaseModel):
    block: int
    label: str
    learned: int
    total: int
    percent: int


class DailyProgress(BaseModel):
    done: int
    goal: int
    percent: int


class StudyRequest(BaseModel):
    mode: Literal["sequential", "due", "scene", "block"]
    scene: Optional[str] = None
    block: Optional[int] = None


class GradeRequest(BaseModel):
    grade: int = Field(ge=1, le=5)


class GoalRequest(BaseModel):
    goal: int = Field(gt=0)
