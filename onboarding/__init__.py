"""
Progressive Profile Onboarding Engine

Conversational, resumable profile questionnaire:
- Static phased question catalog with point values
- Resume point resolution and next-question selection
- Completion and reward tier calculation
- Session state machine (question -> answer -> persist -> advance)
- Best-effort finalize handoff to the matching service

Version: onboarding_engine_v1
"""

__version__ = "onboarding_engine_v1"
