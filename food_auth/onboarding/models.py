"""
Onboarding value types.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OnboardingStep(str, Enum):
    WELCOME = "welcome"
    PHOTO = "photo"
    INTERESTS = "interests"
    DONE = "done"


DEFAULT_INTERESTS = (
    "Comida rápida",
    "Saludable",
    "Postres",
    "Bebidas",
    "Internacional",
    "Local",
)


class InterestOption(BaseModel):
    """A selectable food interest."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_selected: bool = False


class StepResult(BaseModel):
    """
    Outcome of one onboarding pipeline step.

    ``value`` carries what the step produced (the uploaded photo URL), if
    anything.
    """

    model_config = ConfigDict(frozen=True)

    step: str
    ok: bool
    value: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, step: str, value: Optional[str] = None) -> "StepResult":
        return cls(step=step, ok=True, value=value)

    @classmethod
    def failure(cls, step: str, error: str) -> "StepResult":
        return cls(step=step, ok=False, error=error)
