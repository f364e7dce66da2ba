from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from settings import get_settings

logger = logging.getLogger(__name__)

TASK_STATUSES = ("pending", "completed")
TASK_PRIORITIES = ("low", "medium", "high")
RULE_CONDITIONS = ("on_completion", "on_due_date", "on_creation")
RULE_ACTIONS = ("create_followup", "notify_team", "mark_complete")
TEAM_SIZES = ("1-10", "11-50", "51-200", "201-500", "500+")

DEFAULT_TIMER_SETTINGS = {
    "pomodoro_length": 25,
    "short_break": 5,
    "long_break": 15,
    "short_break_seconds": 0,
    "long_break_seconds": 0,
}


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------- DB setup ----------
def make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = make_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


# ---------- Models ----------
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(320), unique=True, index=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
    role = Column(String(30), default="user", nullable=False)
    reset_token = Column(Text, nullable=True)
    reset_token_expiry = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    tasks = relationship("Task", back_populates="user", cascade="all, delete-orphan")


class Task(Base):
    __tablename__ = "tasks"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, default="")
    status = Column(String(20), default="pending", nullable=False)  # pending | completed
    priority = Column(String(20), default="medium", nullable=False)  # low | medium | high
    due_date = Column(DateTime, nullable=True, index=True)
    is_automated = Column(Boolean, default=False, nullable=False)
    time_spent = Column(Integer, default=0, nullable=False)  # minutes

    # timer settings, embedded
    pomodoro_length = Column(Integer, default=25, nullable=False)
    short_break = Column(Integer, default=5, nullable=False)
    long_break = Column(Integer, default=15, nullable=False)
    short_break_seconds = Column(Integer, default=0, nullable=False)
    long_break_seconds = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="tasks")
    automation_rules = relationship(
        "AutomationRule",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="AutomationRule.position",
    )

    @property
    def timer_settings(self) -> dict:
        values = {name: getattr(self, name) for name in DEFAULT_TIMER_SETTINGS}
        return {k: (DEFAULT_TIMER_SETTINGS[k] if v is None else v) for k, v in values.items()}

    def apply_timer_settings(self, settings: dict) -> None:
        for name, value in settings.items():
            if name in DEFAULT_TIMER_SETTINGS and value is not None:
                setattr(self, name, value)


class AutomationRule(Base):
    __tablename__ = "automation_rules"
    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)
    condition = Column(String(30), nullable=False)  # on_completion | on_due_date | on_creation
    action = Column(String(30), nullable=False)  # create_followup | notify_team | mark_complete
    parameters = Column(JSON, default=dict, nullable=False)
    fired_for_due = Column(DateTime, nullable=True)  # due date an on_due_date rule last fired for

    task = relationship("Task", back_populates="automation_rules")


class DemoRequest(Base):
    __tablename__ = "demo_requests"
    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(320), nullable=False)
    company = Column(String(200), default="")
    industry = Column(String(100), default="")
    team_size = Column(String(20), default="")
    message = Column(Text, default="")
    created_at = Column(DateTime, default=utcnow)


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)
    logger.debug("schema ready")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
