"""
Reference Question Catalog
==========================
Phases, questions and reward tiers for the progressive profile.

Keep IDs stable: saved answers are keyed by question id.

Registration already captures name, handle, birth date, location, gender and
contact fields, so those ids are listed in REGISTRATION_QUESTION_IDS and never
asked here.
"""

from typing import List

from .models import InputKind, Phase, Question, RewardTier

POINTS_PER_QUESTION = 5


def q(id, prompt, placeholder, input_kind, phase_id, category, required=False, **extra) -> Question:
    return Question(
        id=id,
        prompt=prompt,
        placeholder=placeholder,
        input_kind=input_kind,
        phase_id=phase_id,
        category=category,
        required=required,
        points=extra.pop("points", POINTS_PER_QUESTION),
        **extra,
    )


QUESTION_PHASES: List[Phase] = [
    Phase(
        id="essential",
        name="Get Started",
        description="Just the basics to begin your journey",
        estimated_time="2-3 minutes",
        required_points=0,
        benefits=["Create your profile", "Start browsing"],
        questions=[
            q(
                "family_stories",
                "Tell me about stories your family shared with you",
                "Stories your father, grandfather, uncles, aunts told you about your family history, heritage, or traditions...",
                InputKind.FREE_FORM_STORY, "essential", "stories", required=True,
            ),
        ],
    ),
    Phase(
        id="core",
        name="Childhood & Family",
        description="Share your childhood memories and family details",
        estimated_time="5-7 minutes",
        required_points=20,
        benefits=["Better matches", "See who viewed you", "Advanced filters"],
        questions=[
            q(
                "childhood_nickname",
                "Did you have a nickname when you were a child?",
                "What did your family and friends call you growing up?",
                InputKind.SHORT_TEXT, "core", "personal",
            ),
            q(
                "childhood_friends",
                "Who were your close childhood friends?",
                "Tell me about your childhood friends - their names and any special memories...",
                InputKind.FREE_FORM_STORY, "core", "personal",
            ),
            q(
                "childhood_memories",
                "Share your favorite childhood memories",
                "Special moments, games you played, places you lived, family trips, traditions...",
                InputKind.FREE_FORM_STORY, "core", "stories", required=True,
            ),
            q(
                "father_name",
                "What's your father's full name?",
                "Enter your father's name",
                InputKind.SHORT_TEXT, "core", "family", required=True,
            ),
            q(
                "mother_name",
                "What's your mother's full name?",
                "Enter your mother's name",
                InputKind.SHORT_TEXT, "core", "family", required=True,
            ),
            q(
                "siblings_relatives",
                "Tell me about your siblings and relatives",
                "Names of your brothers, sisters, uncles, aunts, cousins, or other family members you're close to...",
                InputKind.FREE_FORM_STORY, "core", "family",
                dependencies=["father_name", "mother_name"],
            ),
        ],
    ),
    Phase(
        id="rich",
        name="Education & Languages",
        description="Tell me about your school life and languages",
        estimated_time="6-8 minutes",
        required_points=80,
        benefits=["Premium matching", "Family tree insights", "Priority support", "Advanced analytics"],
        questions=[
            q(
                "kindergarten_memories",
                "Tell me about your kindergarten days",
                "What do you remember about kindergarten? Friends, teachers, activities...",
                InputKind.FREE_FORM_STORY, "rich", "stories",
            ),
            q(
                "primary_school",
                "What about your primary/elementary school?",
                "School name, friends you made, favorite subjects, memorable moments...",
                InputKind.FREE_FORM_STORY, "rich", "stories",
            ),
            q(
                "secondary_school",
                "Share your secondary/high school experience",
                "School name, close friends, subjects you loved, activities, graduation memories...",
                InputKind.FREE_FORM_STORY, "rich", "stories",
            ),
            q(
                "university_college",
                "Tell me about your university or college experience",
                "Institution name, course of study, friends, professors, campus life...",
                InputKind.FREE_FORM_STORY, "rich", "stories",
            ),
            q(
                "languages_dialects",
                "What languages, dialects, or tribal languages do you speak?",
                "List all languages, dialects, tribal languages you speak or understand, including your fluency level...",
                InputKind.FREE_FORM_STORY, "rich", "personal", required=True,
            ),
            q(
                "personal_bio",
                "Finally, write a short bio about yourself",
                "Tell people about your personality, interests, what makes you unique, your dreams...",
                InputKind.FREE_FORM_STORY, "rich", "bio", required=True,
            ),
            q(
                "profession",
                "What is your profession or occupation?",
                "Your current job, career, or field of work...",
                InputKind.SHORT_TEXT, "rich", "personal", required=True,
            ),
            q(
                "hobbies",
                "What are your hobbies and interests?",
                "Sports, music, reading, cooking, traveling, etc...",
                InputKind.LONG_TEXT, "rich", "personal",
            ),
            q(
                "religious_background",
                "What is your religious or spiritual background?",
                "Your faith, beliefs, or spiritual practices...",
                InputKind.SHORT_TEXT, "rich", "personal",
            ),
            q(
                "family_traditions",
                "Tell me about your family traditions and customs",
                "Cultural celebrations, holiday traditions, family customs that are special to your family...",
                InputKind.FREE_FORM_STORY, "rich", "family",
            ),
            q(
                "educational_background",
                "Describe your educational journey in detail",
                "Your complete education path, achievements, favorite subjects, academic experiences...",
                InputKind.FREE_FORM_STORY, "rich", "stories",
            ),
        ],
    ),
]


REWARD_TIERS: List[RewardTier] = [
    RewardTier(
        points_threshold=0,
        reward_name="Newcomer",
        benefits=["Create your profile", "Start browsing"],
    ),
    RewardTier(
        points_threshold=20,
        reward_name="Connector",
        benefits=["Better matches", "See who viewed you", "Advanced filters"],
    ),
    RewardTier(
        points_threshold=50,
        reward_name="Storyteller",
        benefits=["Story highlights on your profile", "Community suggestions"],
    ),
    RewardTier(
        points_threshold=80,
        reward_name="Legacy Keeper",
        benefits=["Premium matching", "Family tree insights", "Priority support", "Advanced analytics"],
    ),
]


REGISTRATION_QUESTION_IDS = frozenset([
    "full_name",
    "username",
    "date_of_birth",
    "current_location",
    "gender",
    "email",
    "phone",
])
