"""OpenAI API integration for Resolution AI.

This module turns goals, subtask requests and missed-task explanations into
lists of proposed tasks. Responses are validated into TaskProposal objects
before they are returned; any failure raises GenerationError so callers can
leave the task collection untouched.
"""

import os
import json
import logging
from datetime import datetime
from typing import List, Optional
from openai import OpenAI, APIError
from pydantic import ValidationError
from dotenv import load_dotenv

from resolutionai.errors import GenerationError
from resolutionai.models.proposal import TaskProposal
from resolutionai.models.task import Task

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

SYSTEM_PROMPT = """You are a goal coach. You break self-improvement goals into concrete, actionable tasks and habits.

Rules:
- Anything meant to be repeated (sleep, exercise, meditation, study sessions) is a habit: set "recurrence" with a
  "frequency" (one of: minutely, hourly, daily, weekly, monthly, yearly) and an "interval" (1 = every unit).
- One-off steps (buy equipment, sign up, book an appointment) have no "recurrence".
- Every description states what "done" looks like.
- If the user explains why a task was missed: when they lacked time, return the same task (same title) with a
  later "due_date"; when it was too hard, return smaller tasks that help them get unstuck.

Respond only with a JSON object of the form:
{{"tasks": [{{"title": str, "description": str, "priority": "low" | "medium" | "high",
             "due_date": ISO-8601 timestamp, "recurrence": {{"frequency": str, "interval": int}} | null,
             "metadata": object}}]}}

The current time is {now}."""

GOAL_PROMPT_TEMPLATE = """Goal: "{goal}"

Create the list of tasks and habits needed to achieve this goal."""

SUBTASK_PROMPT_TEMPLATE = """Parent task: "{title}" ({description}).
The user wants to break it down as follows: "{request}".

Create granular subtasks that fit within the parent task."""

REASSESS_PROMPT_TEMPLATE = """Task: "{title}" ({description}), due {due_date}.
The user missed it and explains: "{reason}".

Either return this task with the exact same title and a new due_date, or return smaller tasks that make it achievable."""


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_proposals(content: str) -> List[TaskProposal]:
    """Parse a generator response into task proposals.

    Accepts either a bare JSON list or an object with a "tasks" list.

    Raises:
        GenerationError: If the content is not JSON or does not fit the task shape
    """
    try:
        data = json.loads(_strip_code_fence(content or ""))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse generator JSON response: {e}. Response: {(content or '')[:100]}")
        raise GenerationError("The assistant returned a response that is not valid JSON") from e

    if isinstance(data, dict):
        data = data.get("tasks")
    if not isinstance(data, list):
        logger.warning("Generator response does not contain a task list")
        raise GenerationError("The assistant response does not contain a task list")

    try:
        return [TaskProposal.model_validate(item) for item in data]
    except ValidationError as e:
        logger.warning(f"Generator returned {e.error_count()} invalid task field(s)")
        raise GenerationError("The assistant returned tasks in an unexpected shape") from e


class TaskGenerator:
    """Client for OpenAI-backed task generation."""

    def __init__(self, api_key: Optional[str] = None, model: str = OPENAI_MODEL):
        """Initialize the generator.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY environment variable.
            model: Chat model name

        Note:
            Without an API key the generator still initializes, but every call raises
            GenerationError.
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model
        self.client = None

        if self.api_key:
            self.client = OpenAI(api_key=self.api_key)
        else:
            logger.warning("OPENAI_API_KEY not found in environment. Task generation will not be available.")

    def generate_tasks(self, goal: str) -> List[TaskProposal]:
        """Propose tasks and habits for a goal."""
        return self._complete(GOAL_PROMPT_TEMPLATE.format(goal=goal))

    def generate_subtasks(self, parent: Task, request: str) -> List[TaskProposal]:
        """Propose subtasks for an existing task."""
        prompt = SUBTASK_PROMPT_TEMPLATE.format(
            title=parent.title,
            description=parent.description,
            request=request,
        )
        return self._complete(prompt)

    def reassess_task(self, task: Task, reason: str) -> List[TaskProposal]:
        """Propose a due date extension or remedial subtasks for a missed task."""
        prompt = REASSESS_PROMPT_TEMPLATE.format(
            title=task.title,
            description=task.description,
            due_date=task.due_date.isoformat(),
            reason=reason,
        )
        return self._complete(prompt)

    def _complete(self, prompt: str) -> List[TaskProposal]:
        if not self.client:
            raise GenerationError("Task generation is not configured (missing OPENAI_API_KEY)")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT.format(now=datetime.now().isoformat(timespec="minutes"))},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=0.4,
            )
        except APIError as e:
            error_code = getattr(e, 'code', None)
            status_code = getattr(e, 'status_code', None)

            if error_code == 'insufficient_quota':
                logger.warning("OpenAI API quota insufficient. Please check billing/payment method in OpenAI dashboard.")
            elif status_code == 429:
                logger.warning("OpenAI API rate limit exceeded. Please wait before retrying.")
            else:
                logger.error(f"OpenAI API error: {status_code or 'unknown'} ({error_code or 'unknown'})")

            # Don't log full error message as it might contain sensitive info
            raise GenerationError("The assistant is unavailable right now, please try again") from e

        content = response.choices[0].message.content or ""
        proposals = parse_proposals(content)
        logger.debug(f"Generator proposed {len(proposals)} tasks")
        return proposals
