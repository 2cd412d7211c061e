from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .config import read_config_key

ALL_SCHOOLS_ROLES: frozenset[str] = frozenset({"supaadmin"})


@dataclass(frozen=True)
class CurrentUser:
    id: int
    email: str
    role: str
    school_id: int | None
    first_name: str = ""
    last_name: str = ""

    @property
    def can_access_all_schools(self) -> bool:
        return self.role in ALL_SCHOOLS_ROLES

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email


def can_access_school(user: CurrentUser | None, school_id: int) -> bool:
    """Without a signed-in user the dashboard runs unrestricted (local snapshots)."""
    if user is None:
        return True
    if user.can_access_all_schools:
        return True
    return user.school_id is not None and user.school_id == school_id


def _parse_int(key: str, raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as err:
        raise ValueError(f"{key} must be an integer, got {raw!r}.") from err


def load_current_user(
    *,
    secrets: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> CurrentUser | None:
    email = read_config_key("LESSONBOARD_USER_EMAIL", secrets=secrets, environ=environ)
    if not email:
        return None

    role = read_config_key("LESSONBOARD_USER_ROLE", secrets=secrets, environ=environ) or "faculty"
    school_id = _parse_int(
        "LESSONBOARD_USER_SCHOOL_ID",
        read_config_key("LESSONBOARD_USER_SCHOOL_ID", secrets=secrets, environ=environ),
    )
    if school_id is None and role not in ALL_SCHOOLS_ROLES:
        raise ValueError(
            "LESSONBOARD_USER_SCHOOL_ID is required unless the user role can access all schools."
        )
    user_id = _parse_int(
        "LESSONBOARD_USER_ID",
        read_config_key("LESSONBOARD_USER_ID", secrets=secrets, environ=environ),
    )

    return CurrentUser(
        id=-1 if user_id is None else user_id,
        email=email,
        role=role,
        school_id=school_id,
        first_name=read_config_key("LESSONBOARD_USER_FIRST_NAME", secrets=secrets, environ=environ) or "",
        last_name=read_config_key("LESSONBOARD_USER_LAST_NAME", secrets=secrets, environ=environ) or "",
    )
