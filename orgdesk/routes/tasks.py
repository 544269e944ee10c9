import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from orgdesk.db import get_db
from orgdesk.models.enums import TaskStatus, TaskVisibility
from orgdesk.models.membership import Membership
from orgdesk.models.task import Task
from orgdesk.permissions.visibility import coerce_visibility, filter_visible, is_visible, validate_visibility
from orgdesk.rbac.deps import OrgContext, get_org_context, require_perm
from orgdesk.schemas.tasks import TaskCreateIn, TaskOut, TaskUpdateIn

router = APIRouter(prefix="/orgs/{org_id}/tasks", tags=["tasks"])

def _out(t: Task) -> TaskOut:
    return TaskOut(
        id=t.id,
        org_id=t.org_id,
        title=t.title,
        description=t.description,
        status=t.status,
        visibility=coerce_visibility(t.visibility) or TaskVisibility.private,
        department=t.department,
        created_by=t.created_by,
        assigned_to=t.assigned_to,
    )

def _ensure_member(db: Session, org_id: uuid.UUID, user_id: uuid.UUID | None) -> None:
    if user_id is None:
        return
    if db.get(Membership, {"user_id": user_id, "org_id": org_id}) is None:
        raise HTTPException(status_code=400, detail="assignee is not a member of this org")

def _get_visible(db: Session, ctx: OrgContext, task_id: uuid.UUID) -> Task:
    t = db.scalar(select(Task).where(Task.id == task_id, Task.org_id == ctx.org.id))
    # invisible tasks look the same as missing ones
    if t is None or not is_visible(t, ctx.viewer()):
        raise HTTPException(status_code=404, detail="task not found")
    return t

@router.post("", response_model=TaskOut)
def create_task(
    org_id: uuid.UUID,
    payload: TaskCreateIn,
    ctx: OrgContext = Depends(require_perm("tasks.create", "tasks.manage")),
    db: Session = Depends(get_db),
) -> TaskOut:
    _ensure_member(db, org_id, payload.assigned_to)

    t = Task(
        org_id=org_id,
        title=payload.title,
        description=payload.description,
        visibility=payload.visibility,
        department=payload.department,
        created_by=ctx.user.id,
        assigned_to=payload.assigned_to,
    )
    db.add(t)
    db.commit()
    db.refresh(t)
    return _out(t)

@router.get("", response_model=list[TaskOut])
def list_tasks(
    org_id: uuid.UUID,
    status: TaskStatus | None = None,
    visibility: TaskVisibility | None = None,
    ctx: OrgContext = Depends(get_org_context),
    db: Session = Depends(get_db),
) -> list[TaskOut]:
    q = select(Task).where(Task.org_id == org_id).order_by(Task.created_at.desc())
    if status is not None:
        q = q.where(Task.status == status)
    if visibility is TaskVisibility.public:
        # untagged rows are public
        q = q.where(or_(Task.visibility == visibility, Task.visibility.is_(None)))
    elif visibility is not None:
        q = q.where(Task.visibility == visibility)

    rows = db.scalars(q).all()
    return [_out(t) for t in filter_visible(rows, ctx.viewer())]

@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: uuid.UUID,
    ctx: OrgContext = Depends(get_org_context),
    db: Session = Depends(get_db),
) -> TaskOut:
    return _out(_get_visible(db, ctx, task_id))

@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    org_id: uuid.UUID,
    task_id: uuid.UUID,
    payload: TaskUpdateIn,
    ctx: OrgContext = Depends(get_org_context),
    db: Session = Depends(get_db),
) -> TaskOut:
    t = _get_visible(db, ctx, task_id)

    uid = ctx.user.id
    involved = uid in (t.created_by, t.assigned_to)
    can_edit = (
        ctx.resolver.has("tasks.manage")
        or (involved and ctx.resolver.has("tasks.edit"))
        or t.assigned_to == uid
    )
    if not can_edit:
        raise HTTPException(status_code=403, detail="forbidden")

    fields = payload.model_fields_set
    if "visibility" in fields or "department" in fields:
        new_visibility = payload.visibility if "visibility" in fields else coerce_visibility(t.visibility)
        new_department = payload.department if "department" in fields else t.department
        try:
            t.department = validate_visibility(new_visibility, new_department)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        t.visibility = new_visibility or TaskVisibility.public

    if payload.title is not None:
        t.title = payload.title
    if "description" in fields:
        t.description = payload.description
    if payload.status is not None:
        t.status = payload.status

    # allow explicit unassign by sending null
    if "assigned_to" in fields:
        _ensure_member(db, org_id, payload.assigned_to)
        t.assigned_to = payload.assigned_to

    db.add(t)
    db.commit()
    db.refresh(t)
    return _out(t)

@router.delete("/{task_id}")
def delete_task(
    task_id: uuid.UUID,
    ctx: OrgContext = Depends(require_perm("tasks.delete")),
    db: Session = Depends(get_db),
) -> dict:
    t = _get_visible(db, ctx, task_id)
    db.delete(t)
    db.commit()
    return {"deleted": True}
