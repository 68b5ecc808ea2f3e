"""Explanation Cache - One explanation per identity, one generation at a time.

Per-identity states:

    ABSENT ──begin──▶ GENERATING ──complete──▶ PRESENT_*
                          │
                          └──fail──▶ (whatever it was before)

The PRESENT_LOCKED / PRESENT_UNLOCKED split is derived from whether
feedback has been recorded since the last successful generation, under
the configured LockPolicy:

    ITERATE  generation locks; feedback unlocks  (regenerate after review)
    FREEZE   generation unlocked; feedback locks (review is final)

A single global slot admits at most one GENERATING identity process-wide.
begin() never awaits between check and set, so on one event loop it is
atomic.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from errlens.errors import InFlightMismatch
from errlens.session.identity import Explanation, Identity

logger = logging.getLogger(__name__)


class ExplanationState(Enum):
    ABSENT = "absent"
    PRESENT_UNLOCKED = "present_unlocked"
    PRESENT_LOCKED = "present_locked"
    GENERATING = "generating"


class LockPolicy(str, Enum):
    """What feedback does to an identity's ability to regenerate."""

    ITERATE = "iterate"
    FREEZE = "freeze"


class ExplanationCache:
    """Keyed store of explanations plus the global in-flight slot.

    Single-writer: the session controller is the only caller.
    """

    def __init__(
        self,
        policy: LockPolicy = LockPolicy.ITERATE,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.policy = policy
        self._clock = clock
        self._entries: dict[Identity, Explanation] = {}
        self._reviewed: set[Identity] = set()
        self._in_flight: Optional[Identity] = None

    # ── Queries ────────────────────────────────────────────────

    @property
    def in_flight(self) -> Optional[Identity]:
        return self._in_flight

    def get(self, identity: Identity) -> Optional[Explanation]:
        return self._entries.get(identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def is_locked(self, identity: Identity) -> bool:
        if identity not in self._entries:
            return False
        reviewed = identity in self._reviewed
        if self.policy is LockPolicy.ITERATE:
            return not reviewed
        return reviewed

    def state(self, identity: Identity) -> ExplanationState:
        if identity == self._in_flight:
            return ExplanationState.GENERATING
        if identity not in self._entries:
            return ExplanationState.ABSENT
        if self.is_locked(identity):
            return ExplanationState.PRESENT_LOCKED
        return ExplanationState.PRESENT_UNLOCKED

    def can_generate(self, identity: Identity) -> bool:
        return self._in_flight is None and not self.is_locked(identity)

    def can_review(self, identity: Identity) -> bool:
        """True when feedback on the current explanation is still outstanding."""
        return (
            identity in self._entries
            and identity != self._in_flight
            and identity not in self._reviewed
        )

    # ── Generation lifecycle ───────────────────────────────────

    def begin(self, identity: Identity) -> bool:
        """
        Claim the in-flight slot for identity.

        Returns:
            False (and changes nothing) if generation is not allowed
        """
        if self._in_flight is not None:
            logger.info("Rejected generation for %s: %s already in flight", identity, self._in_flight)
            return False
        if self.is_locked(identity):
            logger.info("Rejected generation for %s: locked", identity)
            return False

        self._in_flight = identity
        logger.debug("%s -> GENERATING", identity)
        return True

    def complete(self, identity: Identity, content: str) -> Explanation:
        """Store the new explanation (replacing any old one) and free the slot."""
        self._check_in_flight(identity)

        explanation = Explanation(identity=identity, content=content, created_at=self._clock())
        self._entries[identity] = explanation
        self._reviewed.discard(identity)
        self._in_flight = None
        logger.debug("%s -> %s", identity, self.state(identity).name)
        return explanation

    def fail(self, identity: Identity) -> None:
        """Free the slot; the identity keeps whatever it had before begin()."""
        self._check_in_flight(identity)
        self._in_flight = None
        logger.debug("%s generation failed -> %s", identity, self.state(identity).name)

    async def generate(
        self,
        identity: Identity,
        producer: Callable[[], Awaitable[str]],
    ) -> Optional[Explanation]:
        """
        Run one generation cycle: begin, await producer, complete or fail.

        Returns:
            The stored Explanation, or None if the request was not admitted.

        Raises:
            Whatever producer raises, after the slot has been released.
        """
        if not self.begin(identity):
            return None
        try:
            content = await producer()
        except BaseException:
            self.fail(identity)
            raise
        return self.complete(identity, content)

    # ── Feedback ───────────────────────────────────────────────

    def record_feedback(self, identity: Identity) -> bool:
        """
        Mark the current explanation for identity as reviewed.

        Returns:
            False (no-op) if there is nothing awaiting review
        """
        if not self.can_review(identity):
            logger.info("Ignored feedback for %s: nothing awaiting review", identity)
            return False
        self._reviewed.add(identity)
        logger.debug("%s reviewed -> %s", identity, self.state(identity).name)
        return True

    def _check_in_flight(self, identity: Identity) -> None:
        if self._in_flight != identity:
            raise InFlightMismatch(
                f"{identity} does not hold the generation slot (held by {self._in_flight})"
            )
