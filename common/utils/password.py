"""
Password policy and strength scoring.

Two independent checks live here:

- ``meets_minimum_password_policy`` is the gate used to permit sign-up.
- ``evaluate_password_strength`` is the richer, advisory scorer shown to
  the user while typing. It never blocks anything on its own.

Example:
    from common.utils import evaluate_password_strength

    result = evaluate_password_strength("Password123!", email="ana@food.app")
    print(result.tier, result.score)
    for line in result.feedback:
        print(line)
"""

import re
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from common.utils.validators import email_local_part


MIN_PASSWORD_LENGTH = 8

# Fixed display denominator. The reachable maximum is 36 (25+2+2+3+4) but
# existing screens render "score/40", so the value stays as-is.
DISPLAY_SCORE_DENOMINATOR = 40

SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>/?"

COMMON_PATTERNS = ["123", "abc", "password", "qwerty", "iloveyou", "111", "000"]

_DIGIT_RUN = "123456789"
_LETTER_RUN = "abcdefghijklmnopqrstuvwxyz"

SEQUENCES = [
    run[i:i + 3]
    for run in (_DIGIT_RUN, _LETTER_RUN)
    for i in range(len(run) - 2)
]

# (minimum length, points, feedback)
LENGTH_RULES: List[Tuple[int, int, str]] = [
    (16, 25, "Excellent length"),
    (12, 20, "Good length"),
    (10, 15, "Acceptable length, 12 or more characters is better"),
    (8, 10, "Minimum length reached, use 12 or more characters"),
    (0, 0, "Too short, use at least 8 characters"),
]

UPPERCASE_POINTS = 2
LOWERCASE_POINTS = 2
DIGIT_POINTS = 3
SYMBOL_POINTS = 4


class PasswordTier(str, Enum):
    """Strength tiers, weakest first."""

    VERY_WEAK = "VeryWeak"
    WEAK = "Weak"
    MEDIUM = "Medium"
    STRONG = "Strong"
    VERY_STRONG = "VeryStrong"


# (minimum score, tier, headline), evaluated high to low
TIER_RULES: List[Tuple[int, PasswordTier, str]] = [
    (35, PasswordTier.VERY_STRONG, "Very strong password"),
    (28, PasswordTier.STRONG, "Strong password"),
    (20, PasswordTier.MEDIUM, "Medium strength password"),
    (12, PasswordTier.WEAK, "Weak password"),
    (0, PasswordTier.VERY_WEAK, "Very weak password"),
]


class PasswordStrengthResult(BaseModel):
    """Outcome of a strength evaluation. Recomputed on every keystroke."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=0)
    tier: PasswordTier
    feedback: List[str] = Field(default_factory=list)

    @property
    def headline(self) -> str:
        return self.feedback[0] if self.feedback else ""


def meets_minimum_password_policy(password: str) -> bool:
    """
    Gate used to permit sign-up.

    Returns:
        True iff the password has at least 8 characters, one uppercase
        letter and one lowercase letter
    """
    return len(password) >= MIN_PASSWORD_LENGTH and _has_upper(password) and _has_lower(password)


# Unicode-aware, so "Ñ" counts as uppercase
def _has_upper(password: str) -> bool:
    return any(ch.isupper() for ch in password)


def _has_lower(password: str) -> bool:
    return any(ch.islower() for ch in password)


def _length_rule(length: int) -> Tuple[int, str]:
    for minimum, points, message in LENGTH_RULES:
        if length >= minimum:
            return points, message
    return 0, LENGTH_RULES[-1][2]


def _tier_for(score: int) -> Tuple[PasswordTier, str]:
    for minimum, tier, headline in TIER_RULES:
        if score >= minimum:
            return tier, headline
    return TIER_RULES[-1][1], TIER_RULES[-1][2]


def _first_common_pattern(lowered: str) -> Optional[str]:
    for pattern in COMMON_PATTERNS:
        if pattern in lowered:
            return pattern
    return None


def _first_sequence(lowered: str) -> Optional[str]:
    for sequence in SEQUENCES:
        if sequence in lowered:
            return sequence
    return None


def evaluate_password_strength(
    password: str,
    email: Optional[str] = None,
    username: Optional[str] = None,
) -> PasswordStrengthResult:
    """
    Score a password with a fixed, auditable rubric.

    Length earns 0-25 points and each character class adds a fixed amount.
    Common patterns, personal information and sequences only add warnings
    to the feedback; they never change the score.

    Args:
        password: The password being typed
        email: Optional email hint; its local part must not appear
        username: Optional username hint; it must not appear

    Returns:
        PasswordStrengthResult with the tier headline first in ``feedback``
    """
    score = 0
    feedback: List[str] = []

    points, message = _length_rule(len(password))
    score += points
    feedback.append(message)

    if _has_upper(password):
        score += UPPERCASE_POINTS
        feedback.append("Contains uppercase letters")
    else:
        feedback.append("Add uppercase letters")

    if _has_lower(password):
        score += LOWERCASE_POINTS
        feedback.append("Contains lowercase letters")
    else:
        feedback.append("Add lowercase letters")

    if re.search(r"[0-9]", password):
        score += DIGIT_POINTS
        feedback.append("Contains numbers")
    else:
        feedback.append("Add numbers")

    if any(ch in SYMBOLS for ch in password):
        score += SYMBOL_POINTS
        feedback.append("Contains symbols")
    else:
        feedback.append("Add symbols such as !@#$%")

    lowered = password.lower()

    common = _first_common_pattern(lowered)
    if common:
        feedback.append(f"Avoid common patterns such as '{common}'")

    local_part = email_local_part(email).lower()
    if local_part and local_part in lowered:
        feedback.append("Avoid using your email in the password")

    if username and username.lower() in lowered:
        feedback.append("Avoid using your username in the password")

    sequence = _first_sequence(lowered)
    if sequence:
        feedback.append(f"Avoid sequences such as '{sequence}'")

    tier, headline = _tier_for(score)
    feedback.insert(0, f"{headline} ({score}/{DISPLAY_SCORE_DENOMINATOR})")

    return PasswordStrengthResult(score=score, tier=tier, feedback=feedback)
