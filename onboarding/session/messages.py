"""Conversation copy emitted by the orchestrator."""

from typing import List, Optional


def greeting(has_progress: bool, display_name: Optional[str] = None, answered_count: int = 0) -> str:
    if not has_progress:
        return (
            "👋 Hi there! I'm here to help you complete your profile. "
            "Let's start with some basic information so I can connect you with the right people!"
        )
    if display_name and answered_count:
        return (
            f"👋 Welcome back, {display_name}! I see you've already answered {answered_count} questions. "
            "Let me continue with the remaining questions to complete your profile."
        )
    if display_name:
        return f"👋 Welcome back, {display_name}! Let me continue with your profile where we left off."
    return "👋 Welcome back! Let me continue with your profile where we left off."


def celebration(display_name: Optional[str] = None) -> List[str]:
    headline = (
        f"🎉 Congratulations {display_name}! You've completed your profile!"
        if display_name
        else "🎉 Congratulations! You've completed your profile!"
    )
    return [headline, "✨ Thank you for sharing your beautiful stories with me!"]


def finalize_succeeded() -> str:
    return "✅ Perfect! Your matches are ready!"


def finalize_deferred() -> str:
    return "✅ Your profile is complete! We'll finish setting up your matches shortly."


def skipped() -> str:
    return "No problem, we can come back to that one later."


def required_skip_refused() -> str:
    return "This one helps us find your family connections, so we need an answer before moving on."


def answer_deleted() -> str:
    return "Got it, I've removed that answer."
