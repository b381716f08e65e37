"""Framework classifiers.

Each classifier is a pure function of trait scores plus a complete weight
table for its framework (Socionics additionally takes the MBTI code).
"""

from typescope.scoring.frameworks.alignment import classify_alignment
from typescope.scoring.frameworks.attachment import classify_attachment
from typescope.scoring.frameworks.bigfive import classify_bigfive
from typescope.scoring.frameworks.enneagram import classify_enneagram
from typescope.scoring.frameworks.holland import classify_holland
from typescope.scoring.frameworks.integral import classify_integral
from typescope.scoring.frameworks.mbti import classify_mbti
from typescope.scoring.frameworks.socionics import classify_socionics

__all__ = [
    "classify_alignment",
    "classify_attachment",
    "classify_bigfive",
    "classify_enneagram",
    "classify_holland",
    "classify_integral",
    "classify_mbti",
    "classify_socionics",
]
