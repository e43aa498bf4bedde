"""
Answer validation, applied per input kind before anything is persisted.

Returns a normalized copy of the answer (trimmed text, de-duplicated
selections). Raises AnswerValidationError with a user-facing message on
failure; the orchestrator turns that into a re-prompt.
"""

from datetime import date
from typing import List

from onboarding.catalog.models import InputKind, Question, TEXT_KINDS
from onboarding.progress.answers import expected_variant
from onboarding.progress.models import (
    AnswerValue,
    DateAnswer,
    ListAnswer,
    MediaAnswer,
    TextAnswer,
)
from .errors import AnswerValidationError

KIND_LABELS = {
    TextAnswer: "text",
    ListAnswer: "list",
    DateAnswer: "date",
    MediaAnswer: "media",
}


def _clean_items(items: List[str]) -> List[str]:
    """Strip, drop blanks and de-duplicate, keeping first-seen order."""
    seen = []
    for item in items:
        item = item.strip()
        if item and item not in seen:
            seen.append(item)
    return seen


def validate_answer(question: Question, value: AnswerValue) -> AnswerValue:
    variant = expected_variant(question.input_kind)
    if not isinstance(value, variant):
        raise AnswerValidationError(
            question.id,
            f"'{question.id}' expects a {KIND_LABELS[variant]} answer, "
            f"got {KIND_LABELS.get(type(value), type(value).__name__)}",
        )

    kind = question.input_kind

    if kind in TEXT_KINDS:
        text = value.text.strip()
        if question.required and not text:
            raise AnswerValidationError(question.id, "Please share an answer before moving on.")
        return TextAnswer(text=text)

    if kind == InputKind.SINGLE_SELECT:
        choice = value.text.strip()
        if not choice:
            raise AnswerValidationError(question.id, "Please pick one of the options.")
        if question.options and choice not in question.options:
            raise AnswerValidationError(question.id, f"'{choice}' is not one of the available options.")
        return TextAnswer(text=choice)

    if kind == InputKind.MULTI_SELECT_CARDS:
        items = _clean_items(value.items)
        if not items:
            raise AnswerValidationError(question.id, "Please select at least one card.")
        card_ids = {card.id for card in question.cards}
        unknown = [i for i in items if card_ids and i not in card_ids]
        if unknown:
            raise AnswerValidationError(question.id, f"Unknown selection: {', '.join(unknown)}")
        return ListAnswer(items=items)

    if kind == InputKind.IMAGE:
        reference = value.reference.strip()
        if question.required and not reference:
            raise AnswerValidationError(question.id, "Please add a photo.")
        return MediaAnswer(reference=reference)

    if kind == InputKind.MULTI_IMAGE:
        items = _clean_items(value.items)
        if question.required and not items:
            raise AnswerValidationError(question.id, "Please add at least one photo.")
        if len(items) > question.image_limit:
            raise AnswerValidationError(
                question.id, f"You can add up to {question.image_limit} photos."
            )
        return ListAnswer(items=items)

    if kind == InputKind.DATE:
        if question.date_range is not None:
            chosen = value.as_date()
            earliest = date.fromisoformat(question.date_range.min)
            latest = date.fromisoformat(question.date_range.max)
            if chosen < earliest or chosen > latest:
                raise AnswerValidationError(
                    question.id,
                    f"Please pick a date between {question.date_range.min} and {question.date_range.max}.",
                )
        return value

    return value
