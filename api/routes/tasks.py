"""
api/routes/tasks.py -- Task CRUD routes for the TaskVault REST API.

Routes:
  GET    /task          -- list the caller's tasks
  POST   /task          -- create a task owned by the caller; 201
  GET    /task/{id}     -- fetch one of the caller's tasks
  PUT    /task/{id}     -- update a task
  DELETE /task/{id}     -- delete one of the caller's tasks; 204

Every route depends on get_current_identity, and every handler passes the
resolved email to TaskService. The handlers never build store queries
themselves, so ownership is enforced in exactly one place.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.models import TaskCreate, TaskResponse, TaskUpdate
from auth.dependencies import get_current_identity
from auth.models import Identity
from tasks.service import TaskService

router = APIRouter()


@router.get("/task", response_model=list[TaskResponse])
def list_tasks(request: Request, identity: Identity = Depends(get_current_identity)) -> list[TaskResponse]:
    service: TaskService = request.app.state.task_service
    return [TaskResponse.from_task(t) for t in service.list(identity.email)]


@router.post("/task", response_model=TaskResponse, status_code=201)
def create_task(
    request: Request,
    body: TaskCreate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Create a task for the caller. status defaults to "pending"."""
    service: TaskService = request.app.state.task_service
    task = service.create(
        identity.email,
        title=body.title,
        description=body.description,
        due_date=body.due_date,
        status=body.status.value if body.status else None,
    )
    return TaskResponse.from_task(task)


@router.get("/task/{task_id}", response_model=TaskResponse)
def get_task(
    request: Request,
    task_id: int,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Fetch a task. Someone else's task is reported as not found."""
    service: TaskService = request.app.state.task_service
    return TaskResponse.from_task(service.get_by_id(identity.email, task_id))


@router.put("/task/{task_id}", response_model=TaskResponse)
def update_task(
    request: Request,
    task_id: int,
    body: TaskUpdate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Update the supplied fields of a task.

    Whether the task must belong to the caller is decided by TaskService
    (SCOPE_TASK_UPDATES).
    """
    service: TaskService = request.app.state.task_service
    fields = {
        "title": body.title,
        "description": body.description,
        "due_date": body.due_date,
        "status": body.status.value if body.status else None,
    }
    task = service.update(task_id, fields, caller_email=identity.email)
    return TaskResponse.from_task(task)


@router.delete("/task/{task_id}", status_code=204)
def delete_task(
    request: Request,
    task_id: int,
    identity: Identity = Depends(get_current_identity),
) -> Response:
    service: TaskService = request.app.state.task_service
    service.delete(identity.email, task_id)
    return Response(status_code=204)
