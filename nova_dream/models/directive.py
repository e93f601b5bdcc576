"""Action directives — structured requests embedded in assistant replies."""

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ActionType(str, Enum):
    CREATE_TASK = "CREATE_TASK"
    ADD_REVENUE = "ADD_REVENUE"
    CREATE_PROJECT = "CREATE_PROJECT"
    CREATE_NOTE = "CREATE_NOTE"


class Segment(str, Enum):
    """Work segments a revenue line or a project can be filed under."""
    ECOMMERCE = "ecommerce"
    TIKTOK = "tiktok"
    CONSULTING = "consulting"
    ORACLE = "oracle"
    DATA = "data"
    TECH = "tech"
    OTHER = "other"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DirectiveState(str, Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    EXECUTED = "executed"       # Terminal
    DISMISSED = "dismissed"     # Terminal


class DirectiveKey(BaseModel):
    """
    Identity of a directive within one render pass.

    Stable for a given message content: the render id is derived from the
    message (or supplied by the caller) and the index is the directive's
    position in the text.
    """

    model_config = ConfigDict(frozen=True)

    render_id: str
    index: int = Field(ge=0)

    def __str__(self) -> str:
        return f"{self.render_id}:{self.index}"


class ActionDirective(BaseModel):
    """A directive as written in the text. Never persisted."""

    key: DirectiveKey
    type: str                               # Raw token, may be unrecognized
    parameters: Dict[str, str] = {}
    raw: str = ""                           # The matched [[ACTION:...]] span

    @property
    def action_type(self) -> Optional[ActionType]:
        """The recognized type, or None when the token is unknown."""
        try:
            return ActionType(self.type)
        except ValueError:
            return None


# --- Typed actions (validated construction output) ---

class CreateTaskAction(BaseModel):
    kind: Literal[ActionType.CREATE_TASK] = ActionType.CREATE_TASK
    title: str = "New task"
    priority: TaskPriority = TaskPriority.MEDIUM
    description: Optional[str] = None
    due_date: Optional[str] = None


class AddRevenueAction(BaseModel):
    kind: Literal[ActionType.ADD_REVENUE] = ActionType.ADD_REVENUE
    amount: float = 0.0
    amount_text: Optional[str] = None       # As written, for display
    segment: Segment = Segment.OTHER
    date: Optional[str] = None              # None = today at execution time
    description: Optional[str] = None


class CreateProjectAction(BaseModel):
    kind: Literal[ActionType.CREATE_PROJECT] = ActionType.CREATE_PROJECT
    title: str = "New project"
    segment: Segment = Segment.OTHER
    description: Optional[str] = None
    deadline: Optional[str] = None


class CreateNoteAction(BaseModel):
    """Recognized but has no executor."""
    kind: Literal[ActionType.CREATE_NOTE] = ActionType.CREATE_NOTE
    title: Optional[str] = None
    content: Optional[str] = None


Action = Annotated[
    Union[CreateTaskAction, AddRevenueAction, CreateProjectAction, CreateNoteAction],
    Field(discriminator="kind"),
]


class CardField(BaseModel):
    label: str
    value: str


class ActionCard(BaseModel):
    """Confirmable presentation of one directive."""

    key: DirectiveKey
    type: str
    label: str
    icon: str
    fields: List[CardField] = []
    state: DirectiveState = DirectiveState.PENDING
