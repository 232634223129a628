"""
Access policy: decides whether the current foreground app may be used.

Pure function over a snapshot of the stores. It performs no I/O; side
effects the caller must apply (clearing a stale active session, deleting
an expired allowance, resetting edge tracking) are reported as flags on
the returned Decision.
"""

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Mapping, Optional


class Verdict(str, Enum):
    """Outcome of one policy evaluation."""
    ALLOW = "allow"
    GATE = "gate"


@dataclass(frozen=True)
class Decision:
    """
    Result of decide().

    Attributes:
        verdict: ALLOW or GATE
        reason: Short machine-readable reason, used in logs and tests
        is_self: Foreground is our own UI; caller resets its last-gated tracking
        clear_active_session: The stored active session is stale; caller clears it
        expired_allowance: An allowance for this app was seen expired; caller deletes it
    """
    verdict: Verdict
    reason: str
    is_self: bool = False
    clear_active_session: bool = False
    expired_allowance: bool = False

    @property
    def is_gate(self) -> bool:
        return self.verdict == Verdict.GATE


def decide(
    current_id: Optional[str],
    self_id: str,
    blocked: AbstractSet[str],
    allowances: Mapping[str, float],
    active_session: Optional[str],
    now: float,
) -> Decision:
    """
    Evaluate the access rules for the current foreground identifier.

    Rules, first match wins:
        1. Our own UI is always allowed (and edge tracking resets).
        2. The app holding the active session is allowed.
        3. Any other active session is stale and is dropped before continuing.
        4. A live temporary allowance (expires_at > now) allows.
        5. A blocked app is gated.
        6. Everything else is allowed.

    Args:
        current_id: Foreground identifier (None/empty is a no-op ALLOW)
        self_id: Our own identifier
        blocked: Blocked identifiers
        allowances: identifier -> expiry timestamp
        active_session: Identifier of the active session, if any
        now: Current timestamp

    Returns:
        Decision with the verdict and the side effects to apply.
    """
    if not current_id:
        return Decision(Verdict.ALLOW, "no_foreground")

    if current_id == self_id:
        return Decision(Verdict.ALLOW, "self", is_self=True)

    if active_session and current_id == active_session:
        return Decision(Verdict.ALLOW, "active_session")

    stale_session = bool(active_session)

    expired_allowance = False
    expires_at = allowances.get(current_id)
    if expires_at is not None:
        if expires_at > now:
            return Decision(
                Verdict.ALLOW,
                "allowance",
                clear_active_session=stale_session,
            )
        expired_allowance = True

    if current_id in blocked and current_id != self_id:
        return Decision(
            Verdict.GATE,
            "blocked",
            clear_active_session=stale_session,
            expired_allowance=expired_allowance,
        )

    return Decision(
        Verdict.ALLOW,
        "not_blocked",
        clear_active_session=stale_session,
        expired_allowance=expired_allowance,
    )
