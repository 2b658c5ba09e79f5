from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..errors import TodoValidationError
from ..schemas import DeleteResponse, TodoCreate, TodoOut, TodoUpdate
from ..service import TodoService

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)


def get_service(request: Request) -> TodoService:
    """
    Dependency returning the TodoService built once by create_app.
    """
    return request.app.state.service


def _bad_request(exc: TodoValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error (e.g. title missing)"},
        500: {"description": "Storage failure"},
    },
)
def create_todo(payload: TodoCreate, service: TodoService = Depends(get_service)) -> TodoOut:
    """
    Create a new Todo.
    """
    try:
        created = service.create_todo(
            title=payload.title,
            priority=payload.priority,
            due_date=payload.due_date,
            assignee=payload.assignee,
        )
    except TodoValidationError as exc:
        raise _bad_request(exc) from exc
    return TodoOut.model_validate(created)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List all todos, newest first.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_todos(service: TodoService = Depends(get_service)) -> List[TodoOut]:
    """
    List every todo ordered by creation time, newest first.
    """
    return [TodoOut.model_validate(t) for t in service.get_all_todos()]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: str, service: TodoService = Depends(get_service)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    item = service.get_todo_by_id(todo_id)
    if item is None:
        raise _not_found()
    return TodoOut.model_validate(item)


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Partially update a Todo item. Only fields present in the body change; "
        "null clears dueDate or assignee."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Validation error"},
        404: {"description": "Todo not found"},
    },
)
def update_todo(todo_id: str, payload: TodoUpdate, service: TodoService = Depends(get_service)) -> TodoOut:
    """
    Partial update of a Todo item.
    """
    changes = {key: getattr(payload, key) for key in payload.model_fields_set}
    try:
        updated = service.update_todo(todo_id, changes)
    except TodoValidationError as exc:
        raise _bad_request(exc) from exc
    if updated is None:
        raise _not_found()
    return TodoOut.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=DeleteResponse,
    summary="Delete Todo",
    description="Delete a Todo item by ID and return the deleted record.",
    responses={
        200: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: str, service: TodoService = Depends(get_service)) -> DeleteResponse:
    """
    Delete a Todo. Returns 200 with the removed record, 404 if not found.
    """
    removed = service.delete_todo(todo_id)
    if removed is None:
        raise _not_found()
    return DeleteResponse(todo=TodoOut.model_validate(removed))
