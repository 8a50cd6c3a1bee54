"""
Drag-and-drop labelling handler.

The learner drags labels onto a diagram. The answer is a list of placements
``[{"id": "label-1", "x": 120, "y": 48}, ...]`` (a mapping of label id to
``{"x", "y"}`` is accepted too). All-or-nothing: every label needs a
placement whose x and y are each strictly less than ``POSITION_TOLERANCE``
units from the correct position.
"""

from typing import Any

from quiz_engine.schemas import DragDropQuestion

from . import QuestionType, register
from .base import BaseHandler

POSITION_TOLERANCE = 20.0


def _placements(answer: Any) -> dict[str, Any] | None:
    """Index submitted placements by label id; None for unusable shapes."""
    if isinstance(answer, dict):
        return answer
    if not isinstance(answer, list):
        return None
    placements = {}
    for item in answer:
        if isinstance(item, dict) and "id" in item:
            placements.setdefault(str(item["id"]), item)
    return placements


def _coordinates(placement: Any) -> tuple[float, float] | None:
    if not isinstance(placement, dict):
        return None
    try:
        return float(placement["x"]), float(placement["y"])
    except (KeyError, TypeError, ValueError):
        return None


@register(QuestionType.DRAG_DROP)
class DragDropHandler(BaseHandler):
    """Handler for drag-drop labelling questions."""

    hidden_fields = {"labels": {"__all__": {"correct_position"}}}

    def validate(self, question: DragDropQuestion) -> list[str]:
        problems = []
        if not question.labels:
            problems.append("needs at least one label")
        ids = [label.id for label in question.labels]
        if len(ids) != len(set(ids)):
            problems.append("label ids must be unique")
        return problems

    def check(self, question: DragDropQuestion, answer: Any) -> bool:
        placements = _placements(answer)
        if placements is None:
            return False

        for label in question.labels:
            coords = _coordinates(placements.get(label.id))
            if coords is None:
                return False
            x, y = coords
            target = label.correct_position
            if not (abs(x - target.x) < POSITION_TOLERANCE and abs(y - target.y) < POSITION_TOLERANCE):
                return False
        return True

    def correct_answer(self, question: DragDropQuestion) -> list[dict[str, Any]]:
        return [
            {"id": label.id, "x": label.correct_position.x, "y": label.correct_position.y}
            for label in question.labels
        ]
