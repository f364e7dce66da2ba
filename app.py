from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Callable, List, Optional, TypeVar, Union

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

import insights
import pages
from automation import AutomationError, run_action, run_due_rules, run_rules
from database import (
    DEFAULT_TIMER_SETTINGS,
    RULE_ACTIONS,
    TASK_PRIORITIES,
    TASK_STATUSES,
    TEAM_SIZES,
    AutomationRule,
    DemoRequest,
    Task,
    User,
    get_db,
    init_db,
    utcnow,
)
from logging_setup import setup_logging
from schemas import (
    AnalyticsOut,
    AuthOut,
    AutomationIn,
    CalendarDay,
    CalendarOut,
    DueRunOut,
    ForgotPasswordIn,
    MessageOut,
    ProfileOut,
    ProfileUpdate,
    ResetPasswordIn,
    RuleIn,
    SignInIn,
    SignUpIn,
    SuccessOut,
    TaskIn,
    TaskOut,
    TaskUpdate,
    TaskUpdateOut,
    TimeIn,
    TimelineGroup,
    TimerOut,
    TimerType,
    UserOut,
)
from security import (
    AuthError,
    clear_auth_cookie,
    create_reset_token,
    create_session_token,
    hash_password,
    page_user,
    require_user,
    set_auth_cookie,
    verify_password,
    verify_reset_token,
)
from settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

T = TypeVar("T")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_file)
    init_db()
    logger.info("TaskFlow ready (db=%s)", settings.database_url.split("://", 1)[0])
    yield


# ---------- FastAPI ----------
app = FastAPI(title="TaskFlow", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins, allow_methods=["*"], allow_headers=["*"], allow_credentials=True
)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ---------- Helpers ----------
def get_task_or_404(db: Session, user: User, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == user.id).first()
    if not task:
        raise HTTPException(404, "Task not found")
    return task


def user_tasks(db: Session, user: User) -> List[Task]:
    return (
        db.query(Task).filter(Task.user_id == user.id)
        .order_by(Task.created_at.desc(), Task.id.desc()).all()
    )


def build_rules(rules: List[RuleIn]) -> List[AutomationRule]:
    return [
        AutomationRule(position=i, condition=r.condition, action=r.action, parameters=dict(r.parameters))
        for i, r in enumerate(rules)
    ]


def email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return db.query(q.exists()).scalar()


def auth_response(user: User, response: Response) -> AuthOut:
    token = create_session_token(user)
    set_auth_cookie(response, token)
    return AuthOut(id=user.id, name=user.name, email=user.email, token=token)


def commit_automation(db: Session, work: Callable[[], T]) -> T:
    """Run rule or action ``work`` and commit it with the surrounding changes, all or nothing."""
    try:
        result = work()
        db.commit()
    except AutomationError as exc:
        db.rollback()
        raise HTTPException(400, str(exc))
    return result


def send_reset_email(user: User, link: str) -> None:
    # no mail transport; the link only goes to the debug log
    logger.info("outbox: password reset email queued for user %s", user.id)
    logger.debug("outbox: reset link for user %s: %s", user.id, link)


# ---------- Auth ----------
@app.post("/api/auth/signup", response_model=AuthOut)
@app.post("/api/auth/register", response_model=AuthOut, include_in_schema=False)
def sign_up(body: SignUpIn, response: Response, db: Session = Depends(get_db)):
    if email_taken(db, body.email):
        raise HTTPException(400, "Email already registered")
    user = User(name=body.name.strip(), email=body.email, password_hash=hash_password(body.password))
    db.add(user); db.commit(); db.refresh(user)
    logger.info("user %s signed up", user.id)
    return auth_response(user, response)


@app.post("/api/auth/signin", response_model=AuthOut)
def sign_in(body: SignInIn, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not verify_password(body.password, user.password_hash):
        logger.info("failed sign-in attempt")
        raise HTTPException(401, "Invalid email or password")
    logger.info("user %s signed in", user.id)
    return auth_response(user, response)


@app.post("/api/auth/signout", response_model=SuccessOut)
def sign_out(response: Response):
    clear_auth_cookie(response)
    return SuccessOut()


@app.get("/api/auth/me", response_model=UserOut)
def me(user: User = Depends(require_user)):
    return user


@app.post("/api/auth/forgot-password", response_model=MessageOut)
def forgot_password(body: ForgotPasswordIn, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    if not email:
        raise HTTPException(400, "Email is required")
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(404, "No account found with this email")

    token = create_reset_token(user.id)
    user.reset_token = token
    user.reset_token_expiry = utcnow() + timedelta(minutes=settings.reset_ttl_minutes)
    db.commit()

    send_reset_email(user, f"{settings.base_url}/reset-password?token={token}")
    return MessageOut(message="Password reset email sent")


@app.post("/api/auth/reset-password", response_model=MessageOut)
def reset_password(body: ResetPasswordIn, db: Session = Depends(get_db)):
    invalid = HTTPException(400, "Invalid or expired reset token")
    try:
        user_id = verify_reset_token(body.token)
    except AuthError:
        raise invalid
    user = db.get(User, user_id)
    if (
        not user
        or user.reset_token != body.token
        or user.reset_token_expiry is None
        or user.reset_token_expiry < utcnow()
    ):
        raise invalid

    user.password_hash = hash_password(body.password)
    user.reset_token = None
    user.reset_token_expiry = None
    db.commit()
    logger.info("user %s reset their password", user.id)
    return MessageOut(message="Password updated")


# ---- Profile ----
@app.get("/api/user/profile", response_model=ProfileOut)
def get_profile(user: User = Depends(require_user)):
    return ProfileOut(user=UserOut.model_validate(user))


@app.put("/api/user/profile", response_model=ProfileOut)
def update_profile(body: ProfileUpdate, user: User = Depends(require_user), db: Session = Depends(get_db)):
    if body.email != user.email and email_taken(db, body.email, exclude_id=user.id):
        raise HTTPException(409, "Email already registered")
    user.name = body.name.strip()
    user.email = body.email

    if body.current_password and body.new_password:
        if not verify_password(body.current_password, user.password_hash):
            raise HTTPException(400, "Current password is incorrect")
        user.password_hash = hash_password(body.new_password)
        logger.info("user %s changed their password", user.id)

    db.commit(); db.refresh(user)
    return ProfileOut(user=UserOut.model_validate(user))


# ---- Insights ----
@app.get("/api/tasks/timeline", response_model=List[TimelineGroup])
def task_timeline(
    range_: str = Query("all", alias="range"),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if range_ not in insights.TIMELINE_RANGES:
        raise HTTPException(400, f"range must be one of {', '.join(insights.TIMELINE_RANGES)}")
    groups = insights.timeline(user_tasks(db, user), range_)
    return [TimelineGroup(day=day, tasks=[TaskOut.model_validate(t) for t in tasks]) for day, tasks in groups]


@app.get("/api/tasks/calendar", response_model=CalendarOut)
def task_calendar(
    year: Optional[int] = Query(None, ge=1970, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    today = utcnow().date()
    year = year or today.year
    month = month or today.month
    blanks, days = insights.calendar_month(user_tasks(db, user), year, month)
    return CalendarOut(
        year=year, month=month, leading_blanks=blanks,
        days=[CalendarDay(day=d, tasks=[TaskOut.model_validate(t) for t in ts]) for d, ts in days],
    )


@app.get("/api/tasks/analytics", response_model=AnalyticsOut)
def task_analytics(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return AnalyticsOut(**insights.analytics(user_tasks(db, user)))


# ---- Automation ----
@app.post("/api/tasks/automation", response_model=Union[TaskOut, MessageOut])
def automate_task(body: AutomationIn, user: User = Depends(require_user), db: Session = Depends(get_db)):
    task = get_task_or_404(db, user, body.task_id)
    if body.automation_type not in RULE_ACTIONS:
        raise HTTPException(400, "Invalid automation type")

    was_completed = task.status == "completed"

    def work():
        result = run_action(db, task, body.automation_type)
        if body.automation_type == "mark_complete" and not was_completed:
            run_rules(db, task, "on_completion")
        return result

    result = commit_automation(db, work)
    if isinstance(result, str):
        return MessageOut(message=result)
    db.refresh(result)
    return TaskOut.model_validate(result)


@app.post("/api/tasks/automation/due", response_model=DueRunOut)
def run_due_automation(user: User = Depends(require_user), db: Session = Depends(get_db)):
    touched = commit_automation(db, lambda: run_due_rules(db, user))
    return DueRunOut(task_ids=touched)


# ---- Tasks ----
@app.get("/api/tasks", response_model=List[TaskOut])
def list_tasks(
    priority: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if priority and priority != "all" and priority not in TASK_PRIORITIES:
        raise HTTPException(400, "Unknown priority")
    if status and status != "all" and status not in TASK_STATUSES:
        raise HTTPException(400, "Unknown status")
    if sort_by and sort_by not in insights.SORT_KEYS:
        raise HTTPException(400, f"sort_by must be one of {', '.join(insights.SORT_KEYS)}")
    tasks = insights.filter_tasks(user_tasks(db, user), priority=priority, status=status, search=search)
    return insights.sort_tasks(tasks, sort_by)


@app.post("/api/tasks", response_model=TaskOut)
def create_task(body: TaskIn, user: User = Depends(require_user), db: Session = Depends(get_db)):
    if not body.title.strip():
        raise HTTPException(400, "Title is required")
    task = Task(
        user_id=user.id,
        title=body.title.strip(),
        description=body.description or "",
        due_date=body.due_date,
        priority=body.priority or "medium",
        status="pending",
        is_automated=body.is_automated,
        time_spent=0,
    )
    task.apply_timer_settings(DEFAULT_TIMER_SETTINGS)
    if body.timer_settings is not None:
        task.apply_timer_settings(body.timer_settings.model_dump(exclude_none=True))
    task.automation_rules = build_rules(body.automation_rules)
    db.add(task); db.flush()

    commit_automation(db, lambda: run_rules(db, task, "on_creation"))
    db.refresh(task)
    logger.info("user %s created task %s", user.id, task.id)
    return task


@app.get("/api/tasks/{task_id}", response_model=TaskOut)
def get_task(task_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return get_task_or_404(db, user, task_id)


@app.put("/api/tasks/{task_id}", response_model=TaskUpdateOut)
@app.patch("/api/tasks/{task_id}", response_model=TaskUpdateOut)
def update_task(task_id: int, body: TaskUpdate, user: User = Depends(require_user), db: Session = Depends(get_db)):
    task = get_task_or_404(db, user, task_id)
    was_completed = task.status == "completed"

    data = body.model_dump(exclude_unset=True)
    if data.get("title") is not None:
        data["title"] = data["title"].strip()
        if not data["title"]:
            raise HTTPException(400, "Title is required")
    for name in ("title", "description", "priority", "status", "is_automated", "time_spent"):
        if data.get(name) is not None:
            setattr(task, name, data[name])
    if "due_date" in data:
        task.due_date = data["due_date"]  # explicit null clears it
    if body.timer_settings is not None:
        task.apply_timer_settings(body.timer_settings.model_dump(exclude_none=True))
    if body.automation_rules is not None:
        task.automation_rules = build_rules(body.automation_rules)
    db.flush()

    completed_now = not was_completed and task.status == "completed"
    if completed_now:
        commit_automation(db, lambda: run_rules(db, task, "on_completion"))
    else:
        db.commit()
    db.refresh(task)
    if completed_now:
        logger.info("user %s completed task %s", user.id, task.id)
    return TaskUpdateOut(task=TaskOut.model_validate(task))


@app.delete("/api/tasks/{task_id}", response_model=SuccessOut)
def delete_task(task_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    task = get_task_or_404(db, user, task_id)
    db.delete(task)  # cascades delete rules
    db.commit()
    logger.info("user %s deleted task %s", user.id, task_id)
    return SuccessOut()


@app.post("/api/tasks/{task_id}/time", response_model=TaskOut)
def add_time(task_id: int, body: TimeIn, user: User = Depends(require_user), db: Session = Depends(get_db)):
    task = get_task_or_404(db, user, task_id)
    task.time_spent = (task.time_spent or 0) + body.minutes
    db.commit(); db.refresh(task)
    return task


@app.get("/api/tasks/{task_id}/timer", response_model=TimerOut)
def get_timer(
    task_id: int,
    timer_type: TimerType = Query("work", alias="type"),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    task = get_task_or_404(db, user, task_id)
    return TimerOut(task_id=task.id, type=timer_type, seconds=insights.timer_seconds(task, timer_type))


# ---------- Pages ----------
@app.get("/", response_class=HTMLResponse)
def home(user: Optional[User] = Depends(page_user)):
    return HTMLResponse(pages.home_page(user))


@app.get("/features", response_class=HTMLResponse)
def features(user: Optional[User] = Depends(page_user)):
    return HTMLResponse(pages.features_page(user))


@app.get("/solutions", response_class=HTMLResponse)
def solutions(user: Optional[User] = Depends(page_user)):
    return HTMLResponse(pages.solutions_page(user))


@app.get("/resources", response_class=HTMLResponse)
def resources(user: Optional[User] = Depends(page_user)):
    return HTMLResponse(pages.resources_page(user))


@app.get("/pricing", response_class=HTMLResponse)
def pricing(user: Optional[User] = Depends(page_user)):
    return HTMLResponse(pages.pricing_page(user))


@app.get("/get-demo", response_class=HTMLResponse)
def get_demo(user: Optional[User] = Depends(page_user)):
    return HTMLResponse(pages.get_demo_page(user))


@app.post("/get-demo", response_class=HTMLResponse)
def request_demo(
    first_name: str = Form(...),
    last_name: str = Form(...),
    email: str = Form(...),
    company: str = Form(""),
    industry: str = Form(""),
    team_size: str = Form(""),
    message: str = Form(""),
    user: Optional[User] = Depends(page_user),
    db: Session = Depends(get_db),
):
    form = dict(first_name=first_name, last_name=last_name, email=email, company=company,
                industry=industry, team_size=team_size, message=message)
    error = ""
    if not first_name.strip() or not last_name.strip():
        error = "Please tell us your name."
    elif "@" not in email:
        error = "Please enter a valid email address."
    elif team_size and team_size not in TEAM_SIZES:
        error = "Please pick a team size from the list."
    if error:
        return HTMLResponse(pages.get_demo_page(user, error=error, form=form), status_code=400)

    req = DemoRequest(**{k: v.strip() for k, v in form.items()})
    db.add(req); db.commit(); db.refresh(req)
    logger.info("demo request %s received (team size %s)", req.id, req.team_size or "n/a")
    return HTMLResponse(pages.demo_thanks_page(req, user))


@app.get("/sign-in", response_class=HTMLResponse)
def sign_in_ui(user: Optional[User] = Depends(page_user)):
    if user is not None:
        return RedirectResponse("/dashboard", status_code=303)
    return HTMLResponse(pages.sign_in_page())


@app.get("/sign-up", response_class=HTMLResponse)
def sign_up_ui(user: Optional[User] = Depends(page_user)):
    if user is not None:
        return RedirectResponse("/dashboard", status_code=303)
    return HTMLResponse(pages.sign_up_page())


@app.get("/forgot-password", response_class=HTMLResponse)
def forgot_password_ui():
    return HTMLResponse(pages.forgot_password_page())


@app.get("/reset-password", response_class=HTMLResponse)
def reset_password_ui(token: str = ""):
    return HTMLResponse(pages.reset_password_page(token))


@app.get("/dashboard", response_class=HTMLResponse)
def dashboard(user: Optional[User] = Depends(page_user)):
    if user is None:
        return RedirectResponse("/sign-in", status_code=303)
    return HTMLResponse(pages.dashboard_page(user))


@app.get("/profile", response_class=HTMLResponse)
def profile(user: Optional[User] = Depends(page_user)):
    if user is None:
        return RedirectResponse("/sign-in", status_code=303)
    return HTMLResponse(pages.profile_page(user))


def main() -> None:
    import uvicorn

    uvicorn.run("app:app", host="127.0.0.1", port=8000)
