"""
Safe-mode query gate

Advisory, not a security boundary. This is a plain substring scan over the
lower-cased query text; it does not parse SQL. Keywords inside comments or
string literals still match (false positives), and statements that mutate
without one of these exact keyword+space sequences (e.g. "DELETE\\nFROM",
"COPY", writable functions) pass (false negatives). Its only job is to stop
casual, accidental destructive calls. Real protection belongs in the
database role the server connects as.
"""

from dataclasses import dataclass
from typing import Optional

# Each token carries a trailing space so identifiers such as "updated_at"
# or "created" do not match.
DENYLIST_TOKENS = (
    "drop ",
    "truncate ",
    "delete ",
    "update ",
    "alter ",
    "create ",
    "insert ",
)

DENIAL_REASON = "Potentially unsafe query detected. Set 'unsafe' to true to execute."


@dataclass(frozen=True)
class SafetyVerdict:
    allowed: bool
    reason: Optional[str] = None
    token: Optional[str] = None


def classify(text: str) -> SafetyVerdict:
    """
    Decide whether a query may run in safe mode.

    Returns an allowed verdict, or a denied one carrying DENIAL_REASON and
    the first token that matched.
    """
    lowered = text.lower()
    for token in DENYLIST_TOKENS:
        if token in lowered:
            return SafetyVerdict(allowed=False, reason=DENIAL_REASON, token=token.strip())
    return SafetyVerdict(allowed=True)
