"""Combat resolution between colliding monsters."""

from __future__ import annotations

from enum import Enum

from .errors import InvariantViolation
from .models import Monster, MonsterType


class CombatOutcome(str, Enum):
    ARRIVING_REMOVED = "arriving_removed"
    DEFENDING_REMOVED = "defending_removed"
    BOTH_REMOVED = "both_removed"


# winner -> type it removes
BEATS: dict[MonsterType, MonsterType] = {
    MonsterType.VAMPIRE: MonsterType.WEREWOLF,
    MonsterType.WEREWOLF: MonsterType.GHOST,
    MonsterType.GHOST: MonsterType.VAMPIRE,
}


def resolve(arriving: MonsterType, defending: MonsterType) -> CombatOutcome:
    """Return which side leaves the contested square.

    Identical types destroy each other; otherwise the dominance table decides.
    """
    if arriving == defending:
        return CombatOutcome.BOTH_REMOVED
    if BEATS[arriving] == defending:
        return CombatOutcome.DEFENDING_REMOVED
    return CombatOutcome.ARRIVING_REMOVED


def resolve_collision(arriving: Monster, defending: Monster) -> list[Monster]:
    """Resolve a collision and return the monsters that must be removed."""
    if arriving.owner == defending.owner:
        raise InvariantViolation(
            f"combat between monsters of the same owner {arriving.owner} at ({defending.x}, {defending.y})"
        )
    outcome = resolve(arriving.type, defending.type)
    if outcome is CombatOutcome.BOTH_REMOVED:
        return [arriving, defending]
    if outcome is CombatOutcome.DEFENDING_REMOVED:
        return [defending]
    return [arriving]
