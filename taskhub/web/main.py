"""
HTTP and realtime interface for the task service
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    FastAPI,
    Header,
    HTTPException,
    Query,
    Request,
    WebSocket,
    WebSocketDisconnect,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskhub.api.base_store import TaskStore, UserDirectory, AuditSink
from taskhub.api.local_store import LocalTaskStore, LocalUserDirectory, LocalAuditLog
from taskhub.config.constants import (
    ACTIONS_MAX_LIMIT,
    USER_ID_HEADER,
    WS_POLICY_VIOLATION,
)
from taskhub.config.settings import settings
from taskhub.models.response import ConflictResponse, DeleteResponse
from taskhub.models.task import TaskCreate, TaskUpdate
from taskhub.services.broadcaster import Broadcaster
from taskhub.services.task_manager import TaskManager
from taskhub.utils.error_handler import (
    DuplicateTitleError,
    InvalidTaskError,
    NotFoundError,
    VersionConflictError,
    handle_error,
)
from taskhub.utils.logger import logger


class TaskHubService:
    """Wires stores, broadcaster and task manager together"""

    def __init__(
        self,
        store: Optional[TaskStore] = None,
        users: Optional[UserDirectory] = None,
        audit: Optional[AuditSink] = None,
        broadcaster: Optional[Broadcaster] = None,
        require_realtime_auth: Optional[bool] = None,
    ):
        self.store = store or LocalTaskStore(settings.TASKS_FILE)
        self.users = users or LocalUserDirectory(data_file=settings.USERS_FILE)
        self.audit = audit or LocalAuditLog(settings.ACTIONS_FILE)
        self.broadcaster = broadcaster or Broadcaster()
        self.require_realtime_auth = (
            settings.REALTIME_REQUIRE_AUTH if require_realtime_auth is None else require_realtime_auth
        )
        self.task_manager = TaskManager(self.store, self.users, self.audit, self.broadcaster)


async def get_current_user_id(x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER)) -> str:
    """Identity authenticated upstream, passed in the X-User-Id header"""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


def get_service(request: Request) -> TaskHubService:
    return request.app.state.service


def error_response(error: Exception) -> JSONResponse:
    """Map service errors to HTTP responses"""
    if isinstance(error, VersionConflictError):
        body = ConflictResponse(
            current_version=error.current.to_wire(),
            client_version=error.client_payload,
        )
        return JSONResponse(status_code=409, content=body.model_dump(by_alias=True))

    if isinstance(error, NotFoundError):
        status_code = 404
    elif isinstance(error, DuplicateTitleError):
        status_code = 409
    elif isinstance(error, InvalidTaskError):
        status_code = 400
    else:
        status_code = 500

    return JSONResponse(
        status_code=status_code,
        content=handle_error(error).model_dump(exclude_none=True),
    )


router = APIRouter()


@router.get("/api/tasks")
async def list_tasks(
    service: TaskHubService = Depends(get_service),
    user_id: str = Depends(get_current_user_id),
):
    """List all tasks with assignee names"""
    try:
        tasks = await service.task_manager.list_tasks()
        return [task.to_wire() for task in tasks]
    except Exception as e:
        logger.error(f"Error fetching tasks: {e}")
        return error_response(e)


@router.post("/api/tasks", status_code=201)
async def create_task(
    payload: TaskCreate,
    service: TaskHubService = Depends(get_service),
    user_id: str = Depends(get_current_user_id),
):
    """Create task"""
    try:
        task = await service.task_manager.create_task(user_id, payload)
        return task.to_wire()
    except Exception as e:
        logger.error(f"Error creating task: {e}")
        return error_response(e)


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    service: TaskHubService = Depends(get_service),
    user_id: str = Depends(get_current_user_id),
):
    """Update task if the client's version is current"""
    try:
        task = await service.task_manager.update_task(user_id, task_id, payload)
        return task.to_wire()
    except Exception as e:
        logger.error(f"Error updating task {task_id}: {e}")
        return error_response(e)


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    service: TaskHubService = Depends(get_service),
    user_id: str = Depends(get_current_user_id),
):
    """Delete task"""
    try:
        task = await service.task_manager.delete_task(user_id, task_id)
        return DeleteResponse(task_id=task.id).model_dump(by_alias=True)
    except Exception as e:
        logger.error(f"Error deleting task {task_id}: {e}")
        return error_response(e)


@router.post("/api/tasks/smart-assign/{task_id}")
async def smart_assign_task(
    task_id: str,
    service: TaskHubService = Depends(get_service),
    user_id: str = Depends(get_current_user_id),
):
    """Assign task to the least-loaded user"""
    try:
        view = await service.task_manager.reassign_task(user_id, task_id)
        return view.to_wire()
    except Exception as e:
        logger.error(f"Error smart assigning task {task_id}: {e}")
        return error_response(e)


@router.get("/api/actions")
async def list_actions(
    limit: Optional[int] = Query(None, ge=1, le=ACTIONS_MAX_LIMIT),
    service: TaskHubService = Depends(get_service),
    user_id: str = Depends(get_current_user_id),
):
    """Recent audit entries, newest first"""
    try:
        entries = await service.audit.list_recent(limit or settings.ACTIONS_DEFAULT_LIMIT)
        return [entry.to_wire() for entry in entries]
    except Exception as e:
        logger.error(f"Error fetching actions: {e}")
        return error_response(e)


@router.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}


@router.websocket("/ws")
async def realtime(websocket: WebSocket, user_id: Optional[str] = None):
    """
    Realtime channel.

    Frames are {"event": ..., "data": ...}. Client events are relayed to
    all other sessions; server-side actionLogged goes to everyone.
    """
    service: TaskHubService = websocket.app.state.service

    if service.require_realtime_auth:
        user = await service.users.get_user(user_id) if user_id else None
        if user is None:
            logger.warning(f"[Realtime] Rejected unauthenticated session (user_id={user_id})")
            await websocket.close(code=WS_POLICY_VIOLATION)
            return

    await websocket.accept()
    session_id = await service.broadcaster.connect(websocket)

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                logger.warning(f"[Realtime] Malformed frame from {session_id}")
                continue

            if not isinstance(message, dict) or not isinstance(message.get("event"), str):
                logger.warning(f"[Realtime] Frame without event from {session_id}")
                continue

            await service.broadcaster.relay(session_id, message["event"], message.get("data"))
    except WebSocketDisconnect:
        pass
    finally:
        await service.broadcaster.disconnect(session_id)


def create_app(service: Optional[TaskHubService] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        service: Pre-wired service (tests pass their own), built from settings if None
    """
    service = service or TaskHubService()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[Startup] Task service ready")
        yield
        await service.broadcaster.drain()
        logger.info("[Shutdown] Pending broadcasts drained")

    app = FastAPI(title="TaskHub", lifespan=lifespan)
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
