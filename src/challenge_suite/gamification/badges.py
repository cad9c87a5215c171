"""Badge catalogue and award rules.

The catalogue is fixed at build time. Only four badges have rules; the rest
can be earned only through means outside the engine.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    image: str


@dataclass(frozen=True)
class BadgeFacts:
    """What the rules look at for one user."""

    challenges_entered: int
    votes_cast: int
    best_submission_votes: int


FIRST_SUBMISSION = BadgeDefinition(
    "first-submission", "First Submission", "Submitted your first entry", "first-submission.png"
)
TOP_VOTER = BadgeDefinition("top-voter", "Top Voter", "Voted on 50 submissions", "top-voter.png")
CHALLENGE_MASTER = BadgeDefinition(
    "challenge-master", "Challenge Master", "Completed 10 challenges", "challenge-master.png"
)
STREAK_KEEPER = BadgeDefinition("streak-keeper", "Streak Keeper", "Maintained a 7-day streak", "streak-keeper.png")
CREATIVE_GENIUS = BadgeDefinition(
    "creative-genius", "Creative Genius", "Received 100 votes on a submission", "creative-genius.png"
)
COMMUNITY_HERO = BadgeDefinition("community-hero", "Community Hero", "Helped 25 users", "community-hero.png")

BADGES: tuple[BadgeDefinition, ...] = (
    FIRST_SUBMISSION,
    TOP_VOTER,
    CHALLENGE_MASTER,
    STREAK_KEEPER,
    CREATIVE_GENIUS,
    COMMUNITY_HERO,
)

BADGES_BY_ID: dict[str, BadgeDefinition] = {b.id: b for b in BADGES}

TOP_VOTER_THRESHOLD = 50
CHALLENGE_MASTER_THRESHOLD = 10
CREATIVE_GENIUS_THRESHOLD = 100

# Evaluated in this order; a batch of new badges keeps it.
RULES: tuple[tuple[BadgeDefinition, Callable[[BadgeFacts], bool]], ...] = (
    (FIRST_SUBMISSION, lambda f: f.challenges_entered > 0),
    (CHALLENGE_MASTER, lambda f: f.challenges_entered >= CHALLENGE_MASTER_THRESHOLD),
    (TOP_VOTER, lambda f: f.votes_cast >= TOP_VOTER_THRESHOLD),
    (CREATIVE_GENIUS, lambda f: f.best_submission_votes >= CREATIVE_GENIUS_THRESHOLD),
)
