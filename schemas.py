from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from automation import AutomationError, parse_delay_hours

Priority = Literal["low", "medium", "high"]
Status = Literal["pending", "completed"]
Condition = Literal["on_completion", "on_due_date", "on_creation"]
Action = Literal["create_followup", "notify_team", "mark_complete"]
TimerType = Literal["work", "shortBreak", "longBreak"]


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _check_email(value: str) -> str:
    value = value.strip().lower()
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError("invalid email address")
    return value


# ---------- Auth / profile ----------
class SignUpIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(max_length=320)
    password: str = Field(min_length=6, max_length=256)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _check_email(v)


class SignInIn(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    email: str


class AuthOut(UserOut):
    token: str


class ProfileOut(BaseModel):
    user: UserOut


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(max_length=320)
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(default=None, min_length=6, max_length=256)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _check_email(v)


class ForgotPasswordIn(BaseModel):
    email: str = ""


class ResetPasswordIn(BaseModel):
    token: str
    password: str = Field(min_length=6, max_length=256)


class MessageOut(BaseModel):
    message: str


# ---------- Tasks ----------
class TimerSettings(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    pomodoro_length: int
    short_break: int
    long_break: int
    short_break_seconds: int
    long_break_seconds: int


class TimerSettingsIn(BaseModel):
    pomodoro_length: Optional[int] = Field(default=None, ge=1, le=240)
    short_break: Optional[int] = Field(default=None, ge=0, le=120)
    long_break: Optional[int] = Field(default=None, ge=0, le=240)
    short_break_seconds: Optional[int] = Field(default=None, ge=0, le=59)
    long_break_seconds: Optional[int] = Field(default=None, ge=0, le=59)


class RuleIn(BaseModel):
    condition: Condition
    action: Action
    parameters: Dict[str, str] = Field(default_factory=dict)

    @field_validator("parameters")
    @classmethod
    def check_delay(cls, v: Dict[str, str]) -> Dict[str, str]:
        if "delay_hours" in v:
            try:
                parse_delay_hours(v["delay_hours"])
            except AutomationError as exc:
                raise ValueError(str(exc))
        return v


class RuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    condition: Condition
    action: Action
    parameters: Dict[str, str] = Field(default_factory=dict)


class TaskIn(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = ""
    due_date: Optional[datetime] = None
    priority: Priority = "medium"
    is_automated: bool = False
    timer_settings: Optional[TimerSettingsIn] = None
    automation_rules: List[RuleIn] = Field(default_factory=list)

    @field_validator("due_date")
    @classmethod
    def due_as_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    is_automated: Optional[bool] = None
    time_spent: Optional[int] = Field(default=None, ge=0)
    timer_settings: Optional[TimerSettingsIn] = None
    automation_rules: Optional[List[RuleIn]] = None

    @field_validator("due_date")
    @classmethod
    def due_as_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: int
    title: str
    description: str
    status: Status
    priority: Priority
    due_date: Optional[datetime] = None
    is_automated: bool
    time_spent: int
    timer_settings: TimerSettings
    automation_rules: List[RuleOut]
    created_at: datetime
    updated_at: datetime


class TaskUpdateOut(BaseModel):
    task: TaskOut
    success: bool = True


class SuccessOut(BaseModel):
    success: bool = True


class TimeIn(BaseModel):
    minutes: int = Field(gt=0, le=24 * 60)


class TimerOut(BaseModel):
    task_id: int
    type: TimerType
    seconds: int


# ---------- Automation ----------
class AutomationIn(BaseModel):
    task_id: int
    automation_type: str


class DueRunOut(BaseModel):
    task_ids: List[int]


# ---------- Insights ----------
class TimelineGroup(BaseModel):
    day: date
    tasks: List[TaskOut]


class CalendarDay(BaseModel):
    day: date
    tasks: List[TaskOut]


class CalendarOut(BaseModel):
    year: int
    month: int
    leading_blanks: int
    days: List[CalendarDay]


class AnalyticsOut(BaseModel):
    total: int
    completed: int
    pending: int
    overdue: int
    completion_rate: float
    by_priority: Dict[str, int]
    total_time_tracked: int
    average_time_per_task: int
    total_time_tracked_label: str
    average_time_per_task_label: str
