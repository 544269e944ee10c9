"""
Task visibility tiers.

Priority is private > department > public:

- private: creator and assignee only, whatever the viewer's role
- department: viewers in the task's department, global viewers, creator, assignee
- public: anyone passing the task view gate

A task with no visibility tag is public. An unrecognised tag is treated like
private. Nothing here raises.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from orgdesk.models.enums import OrgRole, TaskVisibility
from orgdesk.permissions.layers import ResolutionContext
from orgdesk.permissions.resolver import has_any_permission, has_permission

TASKS_VIEW = "tasks.view"
TASKS_MANAGE = "tasks.manage"

class VisibleTask(Protocol):
    visibility: Any
    department: str | None
    created_by: Any
    assigned_to: Any

T = TypeVar("T", bound=VisibleTask)

@dataclass(frozen=True)
class Viewer:
    id: uuid.UUID | None
    department: str | None = None
    # sees every non-private task in the org
    has_global_view: bool = False
    # passes the tasks.view / tasks.manage gate
    can_view_tasks: bool = False

def viewer_for(
    user_id: uuid.UUID,
    department: str | None,
    role: OrgRole | None,
    ctx: ResolutionContext,
) -> Viewer:
    return Viewer(
        id=user_id,
        department=department,
        has_global_view=has_permission(role, TASKS_MANAGE, ctx),
        can_view_tasks=has_any_permission(role, (TASKS_VIEW, TASKS_MANAGE), ctx),
    )

def coerce_visibility(raw: Any) -> TaskVisibility | None:
    if raw is None or raw == "":
        return TaskVisibility.public
    try:
        return TaskVisibility(raw)
    except ValueError:
        return None

def _norm_department(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None

def is_visible(task: VisibleTask, viewer: Viewer) -> bool:
    visibility = coerce_visibility(getattr(task, "visibility", None))
    involved = viewer.id is not None and viewer.id in (task.created_by, task.assigned_to)

    if visibility is None or visibility is TaskVisibility.private:
        return involved
    if involved:
        return True

    if visibility is TaskVisibility.department:
        if viewer.has_global_view:
            return True
        dept = _norm_department(task.department)
        return dept is not None and dept == _norm_department(viewer.department)

    return viewer.has_global_view or viewer.can_view_tasks

def filter_visible(tasks: Iterable[T], viewer: Viewer) -> list[T]:
    return [t for t in tasks if is_visible(t, viewer)]

def validate_visibility(visibility: TaskVisibility | None, department: str | None) -> str | None:
    """Return the department to store, or raise ValueError on a bad combination."""
    if visibility is TaskVisibility.department:
        dept = (department or "").strip()
        if not dept:
            raise ValueError("department is required when visibility is 'department'")
        return dept
    return None
