from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from clientportal.api.deps import get_db, http_error, require_admin
from clientportal.core.errors import PortalError
from clientportal.models.project import Project
from clientportal.schemas.project import (
    MilestoneCreate,
    MilestoneRead,
    MilestoneUpdate,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectUpdate,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)
from clientportal.services.projects import ProjectService

router = APIRouter(prefix="/admin/projects", tags=["admin"], dependencies=[Depends(require_admin)])


def _service(session: Session) -> ProjectService:
    return ProjectService(session)


def _require_project(service: ProjectService, project_id: UUID) -> Project:
    project = service.get_project(project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Projeto não encontrado")
    return project


@router.get("", response_model=list[ProjectRead])
def list_projects(client_id: UUID | None = Query(None), session: Session = Depends(get_db)) -> list[ProjectRead]:
    return [ProjectRead.model_validate(item) for item in _service(session).list_projects(client_id)]


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(payload: ProjectCreate, session: Session = Depends(get_db)) -> ProjectRead:
    try:
        project = _service(session).create_project(payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return ProjectRead.model_validate(project)


@router.get("/{project_id}", response_model=ProjectDetail)
def get_project(project_id: UUID, session: Session = Depends(get_db)) -> ProjectDetail:
    service = _service(session)
    project = _require_project(service, project_id)
    detail = ProjectDetail.model_validate(project)
    detail.milestones = [MilestoneRead.model_validate(item) for item in service.list_milestones(project_id)]
    detail.tasks = [TaskRead.model_validate(item) for item in service.list_tasks(project_id)]
    return detail


@router.patch("/{project_id}", response_model=ProjectRead)
def update_project(project_id: UUID, payload: ProjectUpdate, session: Session = Depends(get_db)) -> ProjectRead:
    service = _service(session)
    project = service.update_project(_require_project(service, project_id), payload)
    return ProjectRead.model_validate(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: UUID, session: Session = Depends(get_db)) -> None:
    service = _service(session)
    service.delete_project(_require_project(service, project_id))


@router.post("/{project_id}/milestones", response_model=MilestoneRead, status_code=status.HTTP_201_CREATED)
def create_milestone(project_id: UUID, payload: MilestoneCreate, session: Session = Depends(get_db)) -> MilestoneRead:
    try:
        milestone = _service(session).create_milestone(project_id, payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return MilestoneRead.model_validate(milestone)


@router.patch("/milestones/{milestone_id}", response_model=MilestoneRead)
def update_milestone(milestone_id: UUID, payload: MilestoneUpdate, session: Session = Depends(get_db)) -> MilestoneRead:
    try:
        milestone = _service(session).update_milestone(milestone_id, payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return MilestoneRead.model_validate(milestone)


@router.delete("/milestones/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_milestone(milestone_id: UUID, session: Session = Depends(get_db)) -> None:
    try:
        _service(session).delete_milestone(milestone_id)
    except PortalError as exc:
        raise http_error(exc) from exc


@router.post("/{project_id}/tasks", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(project_id: UUID, payload: TaskCreate, session: Session = Depends(get_db)) -> TaskRead:
    try:
        task = _service(session).create_task(project_id, payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return TaskRead.model_validate(task)


@router.patch("/tasks/{task_id}", response_model=TaskRead)
def update_task(task_id: UUID, payload: TaskUpdate, session: Session = Depends(get_db)) -> TaskRead:
    try:
        task = _service(session).update_task(task_id, payload)
    except PortalError as exc:
        raise http_error(exc) from exc
    return TaskRead.model_validate(task)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: UUID, session: Session = Depends(get_db)) -> None:
    try:
        _service(session).delete_task(task_id)
    except PortalError as exc:
        raise http_error(exc) from exc
