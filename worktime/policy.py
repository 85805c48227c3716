from __future__ import annotations
from typing import Iterable, List, Optional

from .models import Profile, Role, Scope, TimeEntry


class AccessDenied(PermissionError):
    pass


def can_access_scope(
    role: Role,
    requested_scope: Scope,
    own_department: Optional[str],
    requested_department: Optional[str] = None,
) -> bool:
    """Single authority on which reporting scope a role may open.

    Super admins see everything. Department admins see individual and their
    own department's reports. Members only see their own records.
    """
    role = Role(role)
    requested_scope = Scope(requested_scope)
    if role is Role.SUPER_ADMIN:
        return True
    if requested_scope is Scope.INDIVIDUAL:
        return True
    if role is Role.DEPARTMENT_ADMIN and requested_scope is Scope.DEPARTMENT:
        if not own_department:
            return False
        return requested_department is None or requested_department == own_department
    return False


def ensure_scope(
    viewer: Profile,
    requested_scope: Scope,
    department_id: Optional[str] = None,
    user_id: Optional[str] = None,
    profiles: Iterable[Profile] = (),
) -> None:
    """Raise AccessDenied unless the viewer may open the requested report.

    Another user's records are open to super admins, and to department admins
    when that user belongs to the admin's own department.
    """
    if not can_access_scope(viewer.role, requested_scope, viewer.department_id, department_id):
        raise AccessDenied(f"{viewer.username} may not open {Scope(requested_scope).value} reports")
    if Scope(requested_scope) is not Scope.INDIVIDUAL or not user_id or user_id == viewer.id:
        return
    if viewer.role is Role.SUPER_ADMIN:
        return
    if viewer.role is Role.DEPARTMENT_ADMIN and viewer.department_id:
        target = next((profile for profile in profiles if profile.id == user_id), None)
        if target is not None and target.department_id == viewer.department_id:
            return
        raise AccessDenied(f"{viewer.username} may only open records of their own department")
    raise AccessDenied(f"{viewer.username} may only open their own records")


def visible_entries(
    entries: Iterable[TimeEntry],
    viewer: Profile,
    profiles: Iterable[Profile],
    department_id: Optional[str] = None,
) -> List[TimeEntry]:
    """Entries the viewer may chart: all, one department, or only their own."""
    if viewer.role is Role.SUPER_ADMIN:
        if department_id is None:
            return list(entries)
        target = department_id
    elif viewer.role is Role.DEPARTMENT_ADMIN and viewer.department_id:
        target = viewer.department_id
    else:
        return [e for e in entries if e.user_id == viewer.id]
    members = {profile.id for profile in profiles if profile.department_id == target}
    return [e for e in entries if e.user_id in members]
