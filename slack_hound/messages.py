"""User-facing strings and reminder phrase selection."""

from __future__ import annotations

import random
from typing import Dict, Sequence

PUNCH_IN_PHRASES = (
    "Check in if you're on the clock~",
    "Don't forget to punch in if you're working~",
    "Are you working right now? Punch in so your hours count!",
    "Good to see you! Remember to clock in~",
)

PUNCH_OUT_PHRASES = (
    "Don't forget to check out~",
    "Still working? If not, punch out~",
    "Heading out? Remember to clock out!",
    "Looks like it's been a while. Punch out if you're done for the day~",
)

PHRASES: Dict[str, Sequence[str]] = {
    "in": PUNCH_IN_PHRASES,
    "out": PUNCH_OUT_PHRASES,
}

ANNOYING_SUFFIX = " :dog2: Woof woof! I'll keep asking~"
ANNOYING_CHANCE = 6

HOUND_HELP = (
    "Hounding reminds you to punch in and out.\n"
    "`hound (self/org) (on/off/pause/reset/status/X hours)`\n"
    "• `hound 2 hours` - remind me at most every 2 hours while active\n"
    "• `hound pause` - stop reminding me until the next morning\n"
    "• `hound off` - stop reminding me until I turn it back on\n"
    "• `hound status` - show my hounding settings"
)

NOT_UNDERSTOOD = (
    "I couldn't understand you. "
    "Try something like `hound (self/org) (on/off/pause/reset/status/X hours)`"
)

REACTION_OK = "dog2"
REACTION_FAIL = "x"


def hound_message(direction: str, rng: random.Random | None = None) -> str:
    """Pick a random reminder phrase for ``direction`` ("in" or "out")."""

    if direction not in PHRASES:
        raise ValueError(f"Unknown hound direction: {direction}")
    rng = rng or random.Random()
    message = rng.choice(PHRASES[direction])
    if rng.randint(1, ANNOYING_CHANCE) == 1:
        message += ANNOYING_SUFFIX
    return message


def reset_report(count: int) -> str:
    noun = "person's" if count == 1 else "peoples'"
    return f"Reset {count} {noun} hound status for the morning"


__all__ = [
    "ANNOYING_SUFFIX",
    "HOUND_HELP",
    "NOT_UNDERSTOOD",
    "PHRASES",
    "REACTION_FAIL",
    "REACTION_OK",
    "hound_message",
    "reset_report",
]
