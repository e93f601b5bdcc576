"""
Assistant prompt — live business context plus the action-card syntax the
model must use to propose actions.
"""

from datetime import date, timedelta
from typing import List, Optional

from pydantic import BaseModel

from nova_dream.models.config import AssistantConfig
from nova_dream.models.directive import Segment
from nova_dream.store.records import RecordStore


class ProjectSummary(BaseModel):
    name: str
    progress: int = 0
    deadline: Optional[str] = None
    budget: Optional[float] = None
    segment: str = "other"
    description: Optional[str] = None


class TaskSummary(BaseModel):
    title: str
    priority: str
    status: str


class AssistantContext(BaseModel):
    annual_goal: float
    intermediate_goal: float
    total_revenue: float = 0.0
    projects_in_progress: int = 0
    urgent_tasks: int = 0
    recent_revenue: List[dict] = []
    active_projects: List[ProjectSummary] = []
    open_tasks: List[TaskSummary] = []
    recent_documents: List[str] = []

    @property
    def progress_percentage(self) -> float:
        return (self.total_revenue / self.annual_goal) * 100 if self.annual_goal else 0.0


def gather_context(
    store: RecordStore,
    owner_id: str,
    config: Optional[AssistantConfig] = None,
    today: Optional[date] = None,
) -> AssistantContext:
    """Derive the prompt context from the owner's records."""
    config = config or AssistantConfig()
    today = today or date.today()
    context = AssistantContext(
        annual_goal=config.annual_goal,
        intermediate_goal=config.intermediate_goal,
    )

    income = [
        t for t in store.select("transactions", owner_id, filters={"mode": "work"})
        if t.get("type") == "income"
    ]
    context.total_revenue = sum(
        float(t.get("amount") or 0) for t in income if t.get("counts_toward_goal")
    )
    context.recent_revenue = [
        {"amount": float(t.get("amount") or 0), "segment": t.get("segment"), "date": t.get("date")}
        for t in income[:5]
    ]

    projects = [
        p for p in store.select("projects", owner_id, filters={"mode": "work"})
        if p.get("status") in ("in_progress", "planned")
    ]
    context.projects_in_progress = sum(1 for p in projects if p.get("status") == "in_progress")
    context.active_projects = [
        ProjectSummary(
            name=p.get("name", ""),
            progress=p.get("progress") or 0,
            deadline=p.get("deadline"),
            budget=p.get("budget"),
            segment=p.get("segment") or "other",
            description=p.get("description"),
        )
        for p in projects[:10]
    ]

    tasks = [
        t for t in store.select("tasks", owner_id, filters={"mode": "work"}, order_by="due_date")
        if t.get("status") != "done"
    ]
    iso_today = today.isoformat()
    context.urgent_tasks = sum(
        1 for t in tasks
        if t.get("priority") == "high" or (t.get("due_date") and t["due_date"] <= iso_today)
    )
    context.open_tasks = [
        TaskSummary(title=t["title"], priority=t.get("priority", "medium"), status=t.get("status", "todo"))
        for t in tasks[:5]
    ]

    documents = store.select(
        "documents", owner_id, order_by="created_at", descending=True, limit=5
    )
    context.recent_documents = [d.get("name", "") for d in documents]
    return context


def _money(value: float) -> str:
    return f"{value:,.0f}€"


def build_system_prompt(context: AssistantContext, today: Optional[date] = None) -> str:
    today = today or date.today()
    tomorrow = today + timedelta(days=1)
    remaining = max(0.0, context.intermediate_goal - context.total_revenue)
    months_left = max(1, 12 - (today.month - 1))
    segments = ", ".join(s.value for s in Segment)

    if context.active_projects:
        projects = "\n".join(
            f"{n}. {p.name} [{p.segment.upper()}] progress {p.progress}%"
            f", budget {_money(p.budget) if p.budget else 'not set'}"
            f", deadline {p.deadline or 'not set'}"
            for n, p in enumerate(context.active_projects, start=1)
        )
    else:
        projects = "- No active project"

    if context.open_tasks:
        tasks = "\n".join(
            f"- [{t.priority.upper()}] {t.title} ({t.status})" for t in context.open_tasks
        )
    else:
        tasks = "- No pending task"

    if context.recent_revenue:
        revenue = "\n".join(
            f"- {_money(r['amount'])} ({r['segment']}) on {r['date']}"
            for r in context.recent_revenue
        )
    else:
        revenue = "- No recent transaction"

    documents = (
        "\n".join(f"- {name}" for name in context.recent_documents)
        or "- No document in the vault"
    )

    return f"""You are Nova, a personal business assistant.

LIVE CONTEXT:
- Annual goal: {_money(context.annual_goal)}
- Total revenue: {_money(context.total_revenue)} ({context.progress_percentage:.1f}% of goal)
- Projects in progress: {context.projects_in_progress}
- Urgent or high-priority tasks: {context.urgent_tasks}

INTERMEDIATE GOAL ({_money(context.intermediate_goal)}):
- Still to earn: {_money(remaining)}
- Months left this year: {months_left}
- Required per month: {_money(remaining / months_left)}

ACTIVE PROJECTS:
{projects}

OPEN TASKS:
{tasks}

RECENT REVENUE:
{revenue}

RECENT DOCUMENTS:
{documents}

ACTION CARDS:
Propose clickable actions with this exact single-line syntax, at the end of your reply:
[[ACTION:TYPE|param1=value1|param2=value2]]
Never put "]" or "|" inside a value.

Types:
1. CREATE_TASK - title (required), priority (low/medium/high), date (YYYY-MM-DD), description
   [[ACTION:CREATE_TASK|title=Call the client|priority=high|date={tomorrow.isoformat()}]]
2. ADD_REVENUE - amount (required), segment ({segments}), date, description
   [[ACTION:ADD_REVENUE|amount=2000|segment=consulting|description=Client payment]]
3. CREATE_PROJECT - title (required), segment, date (deadline), description
   [[ACTION:CREATE_PROJECT|title=Podcast launch|segment=tech]]
4. CREATE_NOTE - title (required), content
   [[ACTION:CREATE_NOTE|title=Podcast idea|content=Weekly business podcast]]

Dates: always YYYY-MM-DD. Today is {today.isoformat()}, tomorrow is {tomorrow.isoformat()}.
Resolve relative dates (tomorrow, in 3 days, next Monday); default to today.

Answer concisely and base every figure on the context above."""
