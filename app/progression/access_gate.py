"""Resolution of a user's access to a sport path."""

from typing import Iterable, Optional, Sequence

from app.core.config import settings
from app.progression.snapshot import AccessFacts, AccessMode, LevelEntry, SportPathInfo


def resolve_access(
    sport_path: SportPathInfo,
    facts: AccessFacts,
    admin_preview: bool = False,
    demo_mode: bool = False,
    premium_roles: Optional[Sequence[str]] = None,
) -> AccessMode:
    """Resolve full, demo or free-tier access.

    Admin preview, a completed purchase and a premium role all give full
    access. Demo access needs both the allow-list entry and the user's demo
    toggle. Everyone else is on the free tier.
    """
    if premium_roles is None:
        premium_roles = settings.PREMIUM_ROLES

    if admin_preview:
        return AccessMode.FULL

    if facts.has_completed_purchase or facts.role in premium_roles:
        return AccessMode.FULL

    if facts.in_demo_allowlist and demo_mode:
        return AccessMode.DEMO

    return AccessMode.FREE_TIER


def has_premium_access(
    role: str,
    admin_preview: bool = False,
    premium_roles: Optional[Sequence[str]] = None,
) -> bool:
    """Whether the user may open premium (advanced) figures."""
    if premium_roles is None:
        premium_roles = settings.PREMIUM_ROLES
    return admin_preview or role in premium_roles


def is_level_reachable(level: LevelEntry, sport_path: SportPathInfo, access_mode: AccessMode) -> bool:
    """False when the level sits behind the free-tier paywall."""
    if access_mode.unlocks_everything:
        return True
    return level.sequence_number <= sport_path.free_levels_count


def paywalled_levels(
    levels: Iterable[LevelEntry],
    sport_path: SportPathInfo,
    access_mode: AccessMode,
) -> int:
    """Number of levels hidden behind the paywall for this access mode."""
    return sum(1 for level in levels if not is_level_reachable(level, sport_path, access_mode))
