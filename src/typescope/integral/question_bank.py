"""Fixed Integral question bank.

Every question offers one option per level, listed in developmental order.
Points follow a common spread: the option's own level gets 5, neighbouring
levels get partial credit.
"""

from __future__ import annotations

from typescope.integral.levels import LEVEL_ORDER
from typescope.integral.models import IntegralOption, IntegralQuestion

MAX_OPTION_POINTS = 5

# option level -> points per level, in LEVEL_ORDER
_POINT_SPREAD: dict[str, tuple[int, ...]] = {
    "red": (5, 1, 2, 1, 0, 0),
    "amber": (1, 5, 2, 1, 0, 0),
    "orange": (1, 2, 5, 1, 1, 0),
    "green": (0, 1, 2, 5, 2, 1),
    "teal": (0, 0, 1, 2, 5, 2),
    "turquoise": (0, 0, 0, 1, 2, 5),
}


def _question(question_id: int, text: str, category: str, options: list[str]) -> IntegralQuestion:
    if len(options) != len(LEVEL_ORDER):
        raise ValueError(f"Question {question_id} needs one option per level")
    return IntegralQuestion(
        id=question_id,
        question=text,
        category=category,
        options=tuple(
            IntegralOption(
                text=option_text,
                scores=dict(zip(LEVEL_ORDER, _POINT_SPREAD[level], strict=True)),
            )
            for level, option_text in zip(LEVEL_ORDER, options, strict=True)
        ),
    )


INTEGRAL_QUESTIONS: tuple[IntegralQuestion, ...] = (
    _question(
        1,
        "When facing a complex problem, how do you typically approach it?",
        "systems-thinking",
        [
            "I act quickly and decisively to get what I need",
            "I follow established procedures and rules",
            "I analyze the data and create a strategic plan",
            "I consider how it affects everyone involved and seek consensus",
            "I look at multiple perspectives and integrate different approaches",
            "I connect with deeper patterns and universal principles at play",
        ],
    ),
    _question(
        2,
        "When people disagree with you, what is your typical response?",
        "perspective-taking",
        [
            "I assert my position strongly to make sure I'm heard",
            "I refer to established rules or authorities to resolve it",
            "I present logical arguments and evidence to prove my point",
            "I try to understand their perspective and find common ground",
            "I explore how both viewpoints might be valid in different contexts",
            "I see it as an opportunity to transcend the apparent conflict",
        ],
    ),
    _question(
        3,
        "How do you think about rules and authority in society?",
        "authority",
        [
            "Rules are obstacles to getting what I want",
            "Rules provide necessary order and should be followed",
            "Rules are tools that should be efficient and rational",
            "Rules should be fair and inclusive of all perspectives",
            "Rules emerge naturally from understanding complex systems",
            "Rules reflect deeper universal principles that transcend culture",
        ],
    ),
    _question(
        4,
        "When encountering contradictory information, how do you respond?",
        "paradox-tolerance",
        [
            "I go with what feels right or serves my immediate needs",
            "I look for the correct answer according to established sources",
            "I analyze the evidence to determine which is more logical",
            "I explore how different perspectives might all have validity",
            "I look for how the contradictions might be part of a larger pattern",
            "I see contradiction as pointing to a deeper unity beyond concepts",
        ],
    ),
    _question(
        5,
        "What motivates you most in making important life decisions?",
        "meta-cognitive",
        [
            "Getting what I want when I want it",
            "Doing what's right according to my values and traditions",
            "Achieving success and accomplishing my goals",
            "Creating harmony and helping others feel included",
            "Understanding how everything connects and integrating wisdom",
            "Aligning with cosmic purpose and universal consciousness",
        ],
    ),
    _question(
        6,
        "How do you prefer to learn new concepts?",
        "complexity",
        [
            "Through direct experience and trial and error",
            "By following established curricula and proven methods",
            "Through systematic study and logical analysis",
            "In groups where we can share different perspectives",
            "By integrating multiple frameworks and seeing connections",
            "Through contemplation and direct intuitive understanding",
        ],
    ),
    _question(
        7,
        "When considering global issues like climate change, what's your primary focus?",
        "systems-thinking",
        [
            "How it affects me and my immediate circle",
            "What authorities and institutions say we should do",
            "Finding practical, efficient solutions",
            "Ensuring everyone has a voice and feels heard",
            "Understanding the complex interconnections across all systems",
            "Seeing it as part of a larger evolutionary transformation",
        ],
    ),
    _question(
        8,
        "How do you handle situations where you need to make decisions with "
        "incomplete information?",
        "complexity",
        [
            "I trust my gut and act quickly",
            "I seek guidance from established authorities or precedents",
            "I gather as much data as possible and do risk analysis",
            "I consult with others to get diverse perspectives",
            "I accept uncertainty as natural and work with multiple possibilities",
            "I trust in the larger intelligence of the universe",
        ],
    ),
    _question(
        9,
        "What does 'being successful' mean to you?",
        "meta-cognitive",
        [
            "Having power and getting what I want",
            "Living according to proper values and earning respect",
            "Achieving my goals and advancing in my career",
            "Contributing to community wellbeing and social justice",
            "Understanding my place in the larger web of existence",
            "Realizing my unity with all of consciousness",
        ],
    ),
)

QUESTIONS_BY_ID: dict[int, IntegralQuestion] = {q.id: q for q in INTEGRAL_QUESTIONS}


def option_level(option: IntegralOption) -> str:
    """Level that an option awards the most points to (earliest on ties)."""
    return max(LEVEL_ORDER, key=lambda level: option.scores.get(level, 0))
