"""Prompt templates for the roadmap generator."""

from __future__ import annotations

from dataclasses import dataclass

RETRY_SUFFIX = "\n\nIMPORTANT: Your previous response was invalid JSON. Return ONLY raw JSON, nothing else."


@dataclass(frozen=True)
class RoadmapRequest:
    """Inputs for one generation call."""

    goal: str
    duration_weeks: int
    difficulty: str
    hours_per_day: float
    skill_level: str

    @property
    def minutes_per_day(self) -> int:
        return int(self.hours_per_day * 60 + 0.5)


def roadmap_prompt(req: RoadmapRequest) -> str:
    """Full curriculum prompt asking for the plan as raw JSON."""
    minutes = req.minutes_per_day
    weeks = req.duration_weeks
    return f"""You are an expert curriculum designer and senior instructor. Create a highly structured, skill-oriented learning roadmap that reads like a professional course syllabus, not a generic daily schedule.

User profile:
- Goal: {req.goal}
- Duration: {weeks} weeks
- Difficulty: {req.difficulty}
- Available study time per day: {req.hours_per_day} hours (= {minutes} minutes)
- Current level: {req.skill_level}

Approach:
- Enumerate every concrete skill, concept and sub-topic needed for the goal, ordered from foundations to capstone projects.
- Each task is ONE specific, atomic skill or lesson. The task title names the exact skill or concept.
- Each task description is 2-4 sentences: what it is and why it matters, exactly what to study or implement, a hands-on practice activity, and what success looks like.
- Week focus is a curriculum module title (e.g. "Module 3: CSS Layouts & Responsive Design").
- Week milestone is a concrete, demonstrable deliverable.
- Weekend days are for review, consolidation or project work, not rest.

Rules:
1. Return ONLY valid JSON. No markdown, no explanation, no backticks.
2. Match the schema below exactly.
3. Total duration_minutes per day must fit within {minutes} minutes.
4. XP values: foundational task 20-50, core skill 50-100, advanced 100-200.
5. category must be exactly one of "Body", "Skills", "Mindset", "Career".
6. Include ALL 7 days (Monday through Sunday) for EVERY week.
7. Generate ALL {weeks} weeks (week 1 through week {weeks}).
8. Never use vague descriptions like "Practice your skills" or "Continue learning".

Schema:
{{
  "title": "<concise 2-5 word roadmap title in Title Case, no filler like 'I want to'>",
  "goal": "{req.goal}",
  "total_duration_weeks": {weeks},
  "difficulty": "{req.difficulty}",
  "weekly_plan": [
    {{
      "week": 1,
      "focus": "Module 1: <curriculum module name>",
      "milestone": "<concrete deliverable>",
      "days": [
        {{
          "day": "Monday",
          "tasks": [
            {{
              "title": "<exact skill or concept>",
              "description": "<2-4 sentence lesson>",
              "duration_minutes": 60,
              "xp": 50,
              "category": "Skills"
            }}
          ]
        }}
      ]
    }}
  ]
}}

Now generate the complete {weeks}-week curriculum for a {req.skill_level} at {req.difficulty} difficulty aiming to: {req.goal}"""


def title_prompt(goal: str) -> str:
    """Short prompt that distills a goal into a 2-5 word course title."""
    return f"""You are a naming expert. Convert this learning goal into a short, professional course title.

Rules:
- 2 to 5 words
- Title Case
- No punctuation at the end
- Remove filler like "I want to", "learn how to", "become a", "I would like to"
- Preserve specific tool and technology names exactly (DaVinci Resolve, MERN, Python, React)
- Output ONLY the title, no quotes, no explanation

Examples:
Goal: "I want to learn video editing in da vinci resolve" -> Video Editing DaVinci Resolve
Goal: "Become a full stack developer using MERN stack" -> Full Stack Development (MERN)
Goal: "Learn Python for data science and machine learning" -> Python Data Science & ML

Goal: "{goal.strip()}\""""
