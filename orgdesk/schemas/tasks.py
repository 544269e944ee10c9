import uuid
from pydantic import BaseModel, Field, model_validator

from orgdesk.models.enums import TaskStatus, TaskVisibility
from orgdesk.permissions.visibility import validate_visibility

class TaskCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    assigned_to: uuid.UUID | None = None
    visibility: TaskVisibility = TaskVisibility.public
    department: str | None = None

    @model_validator(mode="after")
    def _check_department(self):
        self.department = validate_visibility(self.visibility, self.department)
        return self

class TaskUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus | None = None
    assigned_to: uuid.UUID | None = None
    visibility: TaskVisibility | None = None
    department: str | None = None

class TaskOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    title: str
    description: str | None
    status: TaskStatus
    visibility: TaskVisibility
    department: str | None
    created_by: uuid.UUID
    assigned_to: uuid.UUID | None
