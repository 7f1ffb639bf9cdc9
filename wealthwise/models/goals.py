"""
Goal Planning and Advisor Models

A goal is evaluated in two steps:
1. GoalInputs (what the user typed) -> GoalContext (inputs + deterministic math)
2. GoalContext -> GoalAnalysisResult (advisor narrative or offline rules)

The advisor only ever sees a GoalContext whose numbers were already
computed by the engine. It comments on the math, it does not redo it.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


class GoalType(str, Enum):
    """Kinds of savings goal."""
    PURCHASE = "PURCHASE"        # Saving for a specific amount (house, car)
    RETIREMENT = "RETIREMENT"    # Saving for passive income (FIRE)


class GoalVerdict(str, Enum):
    """Verdict labels produced by the offline rule engine."""
    FEASIBLE = "Feasible"
    NEEDS_ADJUSTMENT = "Needs Adjustment"
    MAJOR_DIFFICULTY = "Major Difficulty"


class AnalysisSource(str, Enum):
    """Which path produced an analysis."""
    ADVISOR = "advisor"
    OFFLINE = "offline"


class GoalInputs(BaseModel):
    """
    User-supplied goal parameters.

    Purchase goals need target_amount and years_to_goal.
    Retirement goals need target_monthly_expense.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    type: GoalType
    current_principal: float = Field(
        default=0.0,
        description="Investable assets today"
    )
    monthly_savings: float = Field(
        default=0.0,
        description="Contribution at the end of every month"
    )
    expected_return_rate: float = Field(
        default=0.0,
        description="Expected annual return in percent"
    )

    # Purchase
    target_amount: Optional[float] = None
    years_to_goal: Optional[float] = Field(default=None, ge=0)

    # Retirement
    target_monthly_expense: Optional[float] = None

    @model_validator(mode='after')
    def validate_goal_fields(self) -> 'GoalInputs':
        """Ensure the goal-type-specific fields are present."""
        if self.type is GoalType.PURCHASE:
            if self.target_amount is None or self.years_to_goal is None:
                raise ValueError(
                    "Purchase goals require target_amount and years_to_goal"
                )
        elif self.target_monthly_expense is None:
            raise ValueError("Retirement goals require target_monthly_expense")
        return self


class GoalContext(GoalInputs):
    """Goal inputs together with the computed projection."""

    projected_amount: float
    required_amount: float
    gap: float = Field(description="projected - required; positive means surplus")
    is_achievable: bool

    def to_advisor_payload(self) -> dict:
        """
        Flatten into the dict sent to the advisory collaborator.

        Fields irrelevant to the goal type are dropped.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GoalAnalysisResult(BaseModel):
    """Narrative assessment of a goal."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    evaluation: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Short verdict label"
    )
    summary: str = Field(..., min_length=1)
    suggestions: list[str] = Field(default_factory=list)
    risk_warning: str = ""
    source: AnalysisSource = AnalysisSource.OFFLINE


class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


class ChatMessage(BaseModel):
    """One turn of the advisor conversation."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(default_factory=lambda: uuid4().hex)
    role: ChatRole
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)
