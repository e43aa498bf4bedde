"""
Answer wire format.

The remote service stores raw JSON values: a string for text, date and
media answers, a list of strings for multi-select and multi-image answers.
Decoding uses the question's input kind; a raw value of the wrong shape is
rejected rather than coerced.
"""

from typing import Any, Dict, Type

from onboarding.catalog.models import InputKind, Question
from .models import (
    AnswerValue,
    DateAnswer,
    ListAnswer,
    MediaAnswer,
    TextAnswer,
)


class AnswerDecodeError(ValueError):
    """A stored raw value does not match the question's input kind."""
    pass


VARIANT_FOR_KIND: Dict[InputKind, Type] = {
    InputKind.SHORT_TEXT: TextAnswer,
    InputKind.LONG_TEXT: TextAnswer,
    InputKind.FREE_FORM_STORY: TextAnswer,
    InputKind.SINGLE_SELECT: TextAnswer,
    InputKind.MULTI_SELECT_CARDS: ListAnswer,
    InputKind.MULTI_IMAGE: ListAnswer,
    InputKind.DATE: DateAnswer,
    InputKind.IMAGE: MediaAnswer,
}


def expected_variant(input_kind: InputKind) -> Type:
    return VARIANT_FOR_KIND[input_kind]


def answer_to_wire(value: AnswerValue) -> Any:
    if isinstance(value, TextAnswer):
        return value.text
    if isinstance(value, ListAnswer):
        return list(value.items)
    if isinstance(value, DateAnswer):
        return value.value
    if isinstance(value, MediaAnswer):
        return value.reference
    raise TypeError(f"Unsupported answer value: {type(value).__name__}")


def answer_from_wire(question: Question, raw: Any) -> AnswerValue:
    """Build the typed answer for `question` from a stored raw value."""
    variant = expected_variant(question.input_kind)

    if variant is ListAnswer:
        if not isinstance(raw, list) or not all(isinstance(i, str) for i in raw):
            raise AnswerDecodeError(
                f"{question.id}: expected a list of strings, got {type(raw).__name__}"
            )
        return ListAnswer(items=raw)

    if not isinstance(raw, str):
        raise AnswerDecodeError(
            f"{question.id}: expected a string, got {type(raw).__name__}"
        )

    if variant is DateAnswer:
        try:
            return DateAnswer(value=raw)
        except ValueError as e:
            raise AnswerDecodeError(f"{question.id}: invalid ISO date '{raw}'") from e
    if variant is MediaAnswer:
        return MediaAnswer(reference=raw)
    return TextAnswer(text=raw)


def display_text(value: AnswerValue) -> str:
    """Human-readable rendering for the conversation log."""
    if isinstance(value, ListAnswer):
        return ", ".join(value.items)
    return str(answer_to_wire(value))
