from __future__ import annotations

from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlmodel import Session, select

from clientportal.core.errors import NotFoundError
from clientportal.core.logging_setup import logger
from clientportal.models.billing import Invoice
from clientportal.models.client import Client
from clientportal.models.delivery import Delivery
from clientportal.models.message import Message
from clientportal.models.project import Milestone, MilestoneStatus, Project, Task, TaskStatus
from clientportal.schemas.project import (
    MilestoneCreate,
    MilestoneUpdate,
    ProjectCreate,
    ProjectUpdate,
    TaskCreate,
    TaskUpdate,
)


class ProjectService:
    def __init__(self, session: Session) -> None:
        self.session = session

    # Projetos

    def list_projects(self, client_id: UUID | None = None) -> list[Project]:
        statement = select(Project)
        if client_id is not None:
            statement = statement.where(Project.client_id == client_id)
        return list(self.session.exec(statement.order_by(Project.created_at.desc())).all())

    def get_project(self, project_id: UUID) -> Project | None:
        return self.session.get(Project, project_id)

    def create_project(self, payload: ProjectCreate) -> Project:
        if not self.session.get(Client, payload.client_id):
            raise NotFoundError("Cliente não encontrado")
        data = payload.model_dump()
        data["status"] = payload.status.value
        project = Project(**data)
        self.session.add(project)
        self.session.commit()
        self.session.refresh(project)
        return project

    def update_project(self, project: Project, payload: ProjectUpdate) -> Project:
        for key, value in payload.model_dump(exclude_unset=True).items():
            if key == "status" and value is not None:
                value = value.value
            setattr(project, key, value)
        project.touch()
        self.session.add(project)
        self.session.commit()
        self.session.refresh(project)
        return project

    def delete_project(self, project: Project, *, commit: bool = True) -> None:
        """Remove o projeto com mensagens, entregas, tarefas e etapas.

        Faturas pertencem ao cliente: apenas perdem o vínculo com o projeto.
        """
        project_id = project.id
        for message in self.session.exec(select(Message).where(Message.project_id == project_id)).all():
            self.session.delete(message)
        for delivery in self.session.exec(select(Delivery).where(Delivery.project_id == project_id)).all():
            self.session.delete(delivery)
        for invoice in self.session.exec(select(Invoice).where(Invoice.project_id == project_id)).all():
            invoice.project_id = None
            self.session.add(invoice)
        self.session.flush()

        for task in self.list_tasks(project_id):
            self.session.delete(task)
        self.session.flush()

        for milestone in self.list_milestones(project_id):
            self.session.delete(milestone)
        self.session.flush()

        self.session.delete(project)
        if commit:
            self.session.commit()
        logger.info(f"[PROJECTS] projeto removido id={project_id}")

    # Etapas

    def list_milestones(self, project_id: UUID) -> list[Milestone]:
        statement = (
            select(Milestone)
            .where(Milestone.project_id == project_id)
            .order_by(Milestone.order_index.asc(), Milestone.created_at.asc())
        )
        return list(self.session.exec(statement).all())

    def create_milestone(self, project_id: UUID, payload: MilestoneCreate) -> Milestone:
        self._require_project(project_id)
        data = payload.model_dump()
        data["status"] = payload.status.value
        milestone = Milestone(project_id=project_id, **data)
        self._stamp_completion(milestone, milestone.status == MilestoneStatus.COMPLETED.value)
        self.session.add(milestone)
        self.session.commit()
        self.session.refresh(milestone)
        return milestone

    def update_milestone(self, milestone_id: UUID, payload: MilestoneUpdate) -> Milestone:
        milestone = self.session.get(Milestone, milestone_id)
        if not milestone:
            raise NotFoundError("Etapa não encontrada")
        for key, value in payload.model_dump(exclude_unset=True).items():
            if key == "status" and value is not None:
                value = value.value
            setattr(milestone, key, value)
        self._stamp_completion(milestone, milestone.status == MilestoneStatus.COMPLETED.value)
        milestone.touch()
        self.session.add(milestone)
        self.session.commit()
        self.session.refresh(milestone)
        return milestone

    def delete_milestone(self, milestone_id: UUID) -> None:
        milestone = self.session.get(Milestone, milestone_id)
        if not milestone:
            raise NotFoundError("Etapa não encontrada")
        # Tarefas da etapa continuam no projeto, sem etapa
        for task in self.session.exec(select(Task).where(Task.milestone_id == milestone_id)).all():
            task.milestone_id = None
            self.session.add(task)
        self.session.flush()
        self.session.delete(milestone)
        self.session.commit()

    # Tarefas

    def list_tasks(self, project_id: UUID, milestone_id: UUID | None = None) -> list[Task]:
        statement = select(Task).where(Task.project_id == project_id)
        if milestone_id is not None:
            statement = statement.where(Task.milestone_id == milestone_id)
        statement = statement.order_by(Task.order_index.asc(), Task.created_at.asc())
        return list(self.session.exec(statement).all())

    def list_tasks_for_projects(self, project_ids: Iterable[UUID]) -> list[Task]:
        ids = list(project_ids)
        if not ids:
            return []
        statement = select(Task).where(Task.project_id.in_(ids)).order_by(Task.order_index.asc())
        return list(self.session.exec(statement).all())

    def create_task(self, project_id: UUID, payload: TaskCreate) -> Task:
        self._require_project(project_id)
        data = payload.model_dump()
        data["status"] = payload.status.value
        task = Task(project_id=project_id, **data)
        self._stamp_completion(task, task.status == TaskStatus.COMPLETED.value)
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        return task

    def update_task(self, task_id: UUID, payload: TaskUpdate) -> Task:
        task = self.session.get(Task, task_id)
        if not task:
            raise NotFoundError("Tarefa não encontrada")
        for key, value in payload.model_dump(exclude_unset=True).items():
            if key == "status" and value is not None:
                value = value.value
            setattr(task, key, value)
        self._stamp_completion(task, task.status == TaskStatus.COMPLETED.value)
        task.touch()
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        return task

    def delete_task(self, task_id: UUID) -> None:
        task = self.session.get(Task, task_id)
        if not task:
            raise NotFoundError("Tarefa não encontrada")
        for delivery in self.session.exec(select(Delivery).where(Delivery.task_id == task_id)).all():
            delivery.task_id = None
            self.session.add(delivery)
        self.session.flush()
        self.session.delete(task)
        self.session.commit()

    def _require_project(self, project_id: UUID) -> Project:
        project = self.session.get(Project, project_id)
        if not project:
            raise NotFoundError("Projeto não encontrado")
        return project

    @staticmethod
    def _stamp_completion(item: Milestone | Task, completed: bool) -> None:
        if completed and item.completed_at is None:
            item.completed_at = datetime.utcnow()
        elif not completed:
            item.completed_at = None
