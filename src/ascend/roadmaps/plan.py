"""Weekly plan documents: validation, normalization and task lookup.

A plan is stored as plain JSON on the roadmap row::

    [{"week": 1, "focus": "...", "milestone": "...",
      "days": [{"day": "Monday", "tasks": [{"title": ..., "description": ...,
                "duration_minutes": 60, "xp": 50, "category": "Skills"}]}]}]
"""

from __future__ import annotations

import math
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ascend.db.models import CATEGORIES, DAY_NAMES
from ascend.errors import InvalidInput
from ascend.gamification.level import MAX_TASK_XP, MIN_TASK_XP, calc_task_xp, round_half_up

MIN_TASK_MINUTES = 5
MAX_TASK_MINUTES = 480
DEFAULT_TASK_MINUTES = 30

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_FOCUS_LENGTH = 200
MAX_MILESTONE_LENGTH = 300
MAX_WEEKS = 52


# ---------------------------------------------------------------------------
# Generator output
# ---------------------------------------------------------------------------


class GeneratedTask(BaseModel):
    model_config = ConfigDict(strict=True)

    title: str
    description: str
    duration_minutes: float
    xp: float
    category: Literal["Body", "Skills", "Mindset", "Career"]


class GeneratedDay(BaseModel):
    model_config = ConfigDict(strict=True)

    day: str
    tasks: list[GeneratedTask]


class GeneratedWeek(BaseModel):
    model_config = ConfigDict(strict=True)

    week: int
    focus: str
    milestone: str
    days: list[GeneratedDay]


class GeneratedRoadmap(BaseModel):
    """Structural contract for a generator response. Extra keys are ignored."""

    model_config = ConfigDict(strict=True)

    title: str | None = None
    goal: str
    total_duration_weeks: float
    difficulty: str
    weekly_plan: list[GeneratedWeek] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _titles_unique(self) -> GeneratedRoadmap:
        # Progress rows are keyed by task title, so a repeat would share one row.
        seen: set[str] = set()
        for week in self.weekly_plan:
            for day in week.days:
                for task in day.tasks:
                    if task.title in seen:
                        msg = f"Duplicate task title: {task.title!r}"
                        raise ValueError(msg)
                    seen.add(task.title)
        return self

    def plan_document(self) -> list[dict[str, Any]]:
        """Plan as stored: every week padded to Monday..Sunday, task numbers normalized."""
        return [
            {
                "week": week.week,
                "focus": week.focus,
                "milestone": week.milestone,
                "days": fill_missing_days(
                    [{"day": day.day, "tasks": [_task_document(t) for t in day.tasks]} for day in week.days]
                ),
            }
            for week in self.weekly_plan
        ]


def _task_document(task: GeneratedTask) -> dict[str, Any]:
    return {
        "title": task.title,
        "description": task.description,
        "duration_minutes": _bounded(task.duration_minutes, MIN_TASK_MINUTES, MAX_TASK_MINUTES),
        "xp": _bounded(task.xp, MIN_TASK_XP, MAX_TASK_XP),
        "category": task.category,
    }


def parse_generated_roadmap(data: Any) -> GeneratedRoadmap:  # noqa: ANN401
    """Validate decoded generator JSON.

    Raises:
        ValueError: If the structure does not match the plan contract.
    """
    if not isinstance(data, dict):
        msg = "Generator output is not a JSON object"
        raise ValueError(msg)  # noqa: TRY004
    try:
        return GeneratedRoadmap.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid roadmap structure: {e.error_count()} error(s)"
        raise ValueError(msg) from e


def fill_missing_days(days: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return exactly the seven named days in calendar order.

    Missing days become empty; unknown day names are dropped; the first entry
    wins when a day name repeats.
    """
    by_name: dict[str, dict[str, Any]] = {}
    for day in days:
        by_name.setdefault(day.get("day"), day)
    return [by_name.get(name, {"day": name, "tasks": []}) for name in DAY_NAMES]


# ---------------------------------------------------------------------------
# Hand-authored plans
# ---------------------------------------------------------------------------


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _bounded(value: float, low: int, high: int) -> int:
    """Clamp then round half-up; NaN maps to the lower bound."""
    if math.isnan(value):
        return low
    return _clamp(round_half_up(max(float(low), min(float(high), value))), low, high)


def _minutes(raw: Any) -> int:  # noqa: ANN401
    """Coerce client minutes like JavaScript's Number(x) || 30, then clamp."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = 0.0
    if math.isnan(value) or value == 0:
        value = DEFAULT_TASK_MINUTES
    return _bounded(value, MIN_TASK_MINUTES, MAX_TASK_MINUTES)


def _text(raw: Any, default: str, limit: int) -> str:  # noqa: ANN401
    value = str(raw).strip() if raw is not None else ""
    return (value or default)[:limit]


def _unique_title(title: str, taken: set[str]) -> str:
    """``title``, or ``title (2)``, ``title (3)``... when already used in the plan."""
    candidate, n = title, 1
    while candidate in taken:
        n += 1
        suffix = f" ({n})"
        candidate = title[: MAX_TITLE_LENGTH - len(suffix)] + suffix
    taken.add(candidate)
    return candidate


def sanitize_custom_plan(weekly_plan: list[Any], difficulty: str) -> list[dict[str, Any]]:
    """Normalize a client-authored plan.

    Weeks are renumbered 1..N, days outside Monday..Sunday are dropped, task
    fields are trimmed and clamped, repeated titles get a " (n)" suffix, and XP
    is recomputed from duration and difficulty (any client-supplied XP is
    ignored).

    Raises:
        InvalidInput: If the plan is empty, too long, or a week has no focus.
    """
    if not weekly_plan:
        msg = "At least one week is required"
        raise InvalidInput(msg)
    if len(weekly_plan) > MAX_WEEKS:
        msg = f"Maximum {MAX_WEEKS} weeks allowed"
        raise InvalidInput(msg)

    plan: list[dict[str, Any]] = []
    titles: set[str] = set()
    for index, week in enumerate(weekly_plan, start=1):
        if not isinstance(week, dict):
            msg = f"Week {index} is malformed"
            raise InvalidInput(msg)
        focus = week.get("focus")
        if not isinstance(focus, str) or not focus.strip():
            msg = f"Week {index} is missing a focus/module name"
            raise InvalidInput(msg)

        days = []
        for day in week.get("days") or []:
            if not isinstance(day, dict) or day.get("day") not in DAY_NAMES:
                continue
            tasks = []
            for task in day.get("tasks") or []:
                if not isinstance(task, dict):
                    continue
                minutes = _minutes(task.get("duration_minutes", task.get("durationMinutes")))
                category = task.get("category")
                tasks.append(
                    {
                        "title": _unique_title(
                            _text(task.get("title"), "Untitled Task", MAX_TITLE_LENGTH), titles
                        ),
                        "description": _text(task.get("description"), "", MAX_DESCRIPTION_LENGTH),
                        "duration_minutes": minutes,
                        "xp": calc_task_xp(minutes, difficulty),
                        "category": category if category in CATEGORIES else "Skills",
                    }
                )
            days.append({"day": day["day"], "tasks": tasks})

        plan.append(
            {
                "week": index,
                "focus": focus.strip()[:MAX_FOCUS_LENGTH],
                "milestone": _text(week.get("milestone"), f"Complete Week {index}", MAX_MILESTONE_LENGTH),
                "days": days,
            }
        )
    return plan


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def find_task(plan: list[dict[str, Any]], week: int, day: str, title: str) -> dict[str, Any] | None:
    """Locate a task by its (week number, day name, title) key; first match wins."""
    for week_doc in plan:
        if week_doc.get("week") != week:
            continue
        for day_doc in week_doc.get("days", []):
            if day_doc.get("day") != day:
                continue
            for task in day_doc.get("tasks", []):
                if task.get("title") == title:
                    return task
            return None
        return None
    return None


def count_tasks(plan: list[dict[str, Any]]) -> int:
    return sum(len(day.get("tasks", [])) for week in plan for day in week.get("days", []))


def compute_progress(completed: int, total: int) -> int:
    """Percentage of completed tasks, rounded half-up; 0 for an empty plan."""
    if total <= 0:
        return 0
    return _clamp(round_half_up(100 * completed / total), 0, 100)


# ---------------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------------

_FILLER = re.compile(
    r"^(i want to|i would like to|i'd like to|learn how to|how to|become a?|"
    r"i want to become a?|i am trying to|my goal is to)\s+",
    re.IGNORECASE,
)
_WHITESPACE = re.compile(r"\s+")


def fallback_title(goal: str) -> str:
    """Cheap title from a goal: drop leading filler, capitalize the first five words."""
    stripped = _WHITESPACE.sub(" ", _FILLER.sub("", goal.strip(), count=1)).strip()
    words = [w[:1].upper() + w[1:] for w in stripped.split(" ")[:5] if w]
    return " ".join(words) or goal.strip()[:50]


def truncated_goal_title(goal: str, limit: int = 60) -> str:
    """Used when the generator returns no title: the goal, ellipsized past ``limit`` chars."""
    goal = goal.strip()
    if len(goal) > limit:
        return goal[: limit - 3] + "…"
    return goal
