from __future__ import annotations

from typing import Any, Mapping

ROLE_SUPER_ADMIN = "super-admin"
ROLE_HEAD_CHEF = "head-chef"
ROLE_TEAM_MEMBER = "team-member"
LEGACY_ROLE_USER = "user"

ROLES = (ROLE_SUPER_ADMIN, ROLE_HEAD_CHEF, ROLE_TEAM_MEMBER)

RESOURCES = ("Recipes", "Plateups", "Notifications", "Panels")

PERMISSION_NAMES: tuple[str, ...] = (
    "canViewRecipes",
    "canEditRecipes",
    "canDeleteRecipes",
    "canUpdateRecipes",
    "canViewPlateups",
    "canCreatePlateups",
    "canDeletePlateups",
    "canUpdatePlateups",
    "canViewNotifications",
    "canCreateNotifications",
    "canDeleteNotifications",
    "canUpdateNotifications",
    "canViewPanels",
    "canCreatePanels",
    "canDeletePanels",
    "canUpdatePanels",
    "canManageTeam",
    "canAccessAdmin",
)

VIEW_PERMISSIONS = frozenset(f"canView{resource}" for resource in RESOURCES)


def normalize_role(role: str | None) -> str:
    """Map the legacy ``user`` role onto ``team-member``."""
    if not isinstance(role, str):
        return ""
    value = role.strip().lower()
    if value == LEGACY_ROLE_USER:
        return ROLE_TEAM_MEMBER
    return value


def is_team_member_role(role: str | None) -> bool:
    return normalize_role(role) == ROLE_TEAM_MEMBER


def permissions_for(role: str | None) -> dict[str, bool]:
    normalized = normalize_role(role)
    if normalized in {ROLE_HEAD_CHEF, ROLE_SUPER_ADMIN}:
        return {name: True for name in PERMISSION_NAMES}
    if normalized == ROLE_TEAM_MEMBER:
        return {name: name in VIEW_PERMISSIONS for name in PERMISSION_NAMES}
    return {name: False for name in PERMISSION_NAMES}


def validate_override(patch: Mapping[str, Any]) -> dict[str, bool]:
    unknown = sorted(set(patch) - set(PERMISSION_NAMES))
    if unknown:
        raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
    invalid = sorted(name for name, value in patch.items() if not isinstance(value, bool))
    if invalid:
        raise ValueError(f"Permission values must be booleans: {', '.join(invalid)}")
    return dict(patch)


def merge_override(current: Mapping[str, bool] | None, patch: Mapping[str, Any]) -> dict[str, bool]:
    merged = dict(current or {})
    merged.update(validate_override(patch))
    return merged


def effective_permissions(role: str | None, override: Mapping[str, bool] | None = None) -> dict[str, bool]:
    """Role bitmap overlaid by an admin-supplied patch."""
    permissions = permissions_for(role)
    if override:
        for name, value in override.items():
            if name in permissions:
                permissions[name] = bool(value)
    return permissions
