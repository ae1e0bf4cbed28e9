"""
Pushbook Task Filters

Decides, per task per host, whether execution proceeds.
"""

from typing import Collection, List, Optional

from pushbook.engine.context import Context
from pushbook.engine.playbook import Task
from pushbook.engine.templating import ConditionEvaluator, evaluate_when


def matches_tags(task_tags: Optional[List[str]], requested_tags: Optional[Collection[str]]) -> bool:
    """
    Tag gate.

    With no requested tags every task runs. Otherwise a task runs only if
    it has tags and at least one of them was requested.
    """
    if requested_tags is None:
        return True
    if not task_tags:
        return False
    return any(tag in requested_tags for tag in task_tags)


def should_run(
    task: Task,
    context: Context,
    requested_tags: Optional[Collection[str]],
    evaluator: ConditionEvaluator = evaluate_when,
) -> bool:
    """
    Return True if ``task`` should execute against the host owning ``context``.

    Tasks outside the tag filter are skipped without evaluating their
    'when' guard; otherwise the guard is evaluated against the host's
    current context.

    Raises:
        RenderError: If the 'when' expression cannot be evaluated
    """
    if not matches_tags(task.tags, requested_tags):
        return False
    if task.when:
        return evaluator(task.when, context)
    return True


def combine_tags(
    include_tags: Optional[List[str]],
    requested_tags: Optional[Collection[str]],
) -> Optional[List[str]]:
    """
    Effective tag filter for an included playbook.

    An include's own tags restrict which of the included tasks are
    eligible, on top of the run-wide requested tags.
    """
    if include_tags is None:
        return list(requested_tags) if requested_tags is not None else None
    if requested_tags is None:
        return list(include_tags)
    return [tag for tag in include_tags if tag in requested_tags]
