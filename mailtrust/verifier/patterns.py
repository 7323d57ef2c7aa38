# mailtrust/verifier/patterns.py
"""
Rule-based signals for disposable addresses.

Two layers:
  - TEMP_EMAIL_PATTERNS: fixed, ordered regexes applied to the full address.
    The first match wins and its label explains the score.
  - score_username(): an additive entropy heuristic on the username, used
    only when no fixed pattern matched.
"""
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence


@dataclass(frozen=True)
class TempPattern:
    regex: Pattern
    label: str
    domain_level: bool = False

    def search(self, value: str) -> bool:
        return self.regex.search(value) is not None


def _keyword(word: str) -> TempPattern:
    return TempPattern(
        re.compile(re.escape(word)),
        f"Email matches temporary pattern: contains '{word}'",
        domain_level=True,
    )


def _username(expr: str, description: str) -> TempPattern:
    return TempPattern(re.compile(expr), f"Email matches temporary pattern: {description}")


DOMAIN_KEYWORDS = (
    "temp", "disposable", "throwaway", "fake", "trash", "junk", "spam", "burner",
    "guerrilla", "mailinator", "yopmail", "10minute", "discard", "nada",
)

# order matters: domain keywords first, then username shapes
TEMP_EMAIL_PATTERNS: List[TempPattern] = [_keyword(w) for w in DOMAIN_KEYWORDS] + [
    _username(r"[0-9]{5,}@", "long digit run in username"),
    _username(r"^test[0-9]{2,}@", "numbered test account"),
    _username(r"^[a-z]+[0-9]{4,}@", "letters followed by 4+ digits"),
    _username(r"^(temp|tmp|mail|spam|no|fake|user|test|random)[._-]?[a-z0-9]+@", "throwaway username prefix"),
    _username(r"^[a-z]{4,7}[0-9]{4,}@", "short word followed by 4+ digits"),
    _username(r"^[a-z][0-9]{4,}[a-z]+@", "alternating letter and digit blocks"),
    _username(r"^[a-z]+[0-9]{4,}[a-z]+@", "alternating letter and digit blocks"),
    _username(r"^[a-z0-9]{10,}@", "high-entropy alphanumeric username"),
]

DOMAIN_PATTERNS: List[TempPattern] = [p for p in TEMP_EMAIL_PATTERNS if p.domain_level]


def match_temp_pattern(email: str, patterns: Sequence[TempPattern] = TEMP_EMAIL_PATTERNS) -> Optional[TempPattern]:
    """Return the first pattern matching the lowercased address, or None."""
    value = (email or "").lower()
    for pattern in patterns:
        if pattern.search(value):
            return pattern
    return None


def matches_domain_pattern(domain: str) -> bool:
    return match_temp_pattern(domain, DOMAIN_PATTERNS) is not None


# ---------------------------------------------------------
# Username entropy heuristic
# ---------------------------------------------------------

RANDOM_USERNAME_SCORE = 5
SUSPICIOUS_USERNAME_SCORE = 3
RANDOM_USERNAME_PENALTY = 35
SUSPICIOUS_USERNAME_PENALTY = 20

RANDOM_USERNAME_LABEL = "Username appears randomly generated"
SUSPICIOUS_USERNAME_LABEL = "Username has suspicious pattern"

_DIGIT_RUN = re.compile(r"\d{4,}")


@dataclass(frozen=True)
class DomainRule:
    """Provider-specific username shape worth an extra entropy bonus."""

    domain: str
    regex: Pattern
    label: str
    bonus: int = 5

    def applies(self, username: str, domain: str) -> bool:
        return domain == self.domain and self.regex.search(username) is not None


DEFAULT_DOMAIN_RULES: List[DomainRule] = [
    DomainRule(
        domain="dizigg.com",
        regex=re.compile(r"[a-z]{5,7}[0-9]{4,}"),
        label="Matches typical pattern for disposable email service",
    ),
]


@dataclass(frozen=True)
class UsernameScore:
    score: int
    penalty: int
    label: str


def score_username(
    username: str,
    domain: str = "",
    rules: Iterable[DomainRule] = DEFAULT_DOMAIN_RULES,
) -> UsernameScore:
    """
    Entropy score for a username; higher means more random-looking.
    Returns the score together with the trust penalty and label it earns.
    """
    username = (username or "").lower()
    length = len(username)
    has_digits = any(c.isdigit() for c in username)
    has_letters = re.search(r"[a-z]", username) is not None

    score = 0
    if length > 12:
        score += 2
    if length > 8:
        score += 1

    if has_digits and has_letters:
        score += 2

    if has_digits:
        digit_count = sum(1 for c in username if c.isdigit())
        if digit_count / length > 0.4:
            score += 2
        if digit_count >= 4:
            score += 1

    if _DIGIT_RUN.search(username):
        score += 3

    rule_label = ""
    for rule in rules:
        if rule.applies(username, domain):
            score += rule.bonus
            rule_label = rule_label or rule.label

    if score >= RANDOM_USERNAME_SCORE:
        return UsernameScore(score, RANDOM_USERNAME_PENALTY, rule_label or RANDOM_USERNAME_LABEL)
    if score >= SUSPICIOUS_USERNAME_SCORE:
        return UsernameScore(score, SUSPICIOUS_USERNAME_PENALTY, rule_label or SUSPICIOUS_USERNAME_LABEL)
    return UsernameScore(score, 0, "")
