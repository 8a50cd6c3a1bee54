"""
Organ identification question handler.

The learner clicks a hotspot on a 3D anatomy model; the submitted hotspot id
must equal the question's ``hotspotId``. The hotspot id is the answer key, so
it is withheld from the presentation form while the organ and model
references stay visible.
"""

from typing import Any

from quiz_engine.schemas import OrganIdentificationQuestion

from . import QuestionType, register
from .base import BaseHandler


@register(QuestionType.ORGAN_IDENTIFICATION)
class OrganIdentificationHandler(BaseHandler):
    """Handler for organ-identification questions."""

    hidden_fields = {"hotspot_id"}

    def validate(self, question: OrganIdentificationQuestion) -> list[str]:
        if not question.hotspot_id:
            return ["hotspotId is empty"]
        return []

    def check(self, question: OrganIdentificationQuestion, answer: Any) -> bool:
        return answer == question.hotspot_id

    def correct_answer(self, question: OrganIdentificationQuestion) -> str:
        return question.hotspot_id
