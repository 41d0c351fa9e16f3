"""
Catalog Service - Plain CRUD for an owner's projects and tags.

Nothing here has invariants beyond "the row belongs to the caller"; a row
owned by someone else behaves exactly like a missing one.
"""

import logging
from typing import List, Optional

from timekeeper.domain.errors import NotFoundError
from timekeeper.domain.models import Project, Tag
from timekeeper.infra.db import Database
from timekeeper.infra.repository import ProjectRepository, TagRepository

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, database: Database):
        self.database = database

    # Projects

    async def list_projects(self, owner_id: int) -> List[Project]:
        async with self.database.session("list projects") as session:
            return await ProjectRepository(session).get_all(owner_id)

    async def create_project(self, owner_id: int, name: str,
                             color: Optional[str] = None) -> Project:
        async with self.database.transaction("create project") as session:
            project = await ProjectRepository(session).create(
                Project(owner_id=owner_id, name=name, color=color or None)
            )
        logger.info(f"Created project {project.id} for owner {owner_id}")
        return project

    async def update_project(self, owner_id: int, project_id: int, name: str,
                             color: Optional[str] = None) -> Project:
        project = Project(id=project_id, owner_id=owner_id, name=name, color=color or None)
        async with self.database.transaction("update project") as session:
            if not await ProjectRepository(session).update(project):
                raise NotFoundError("project", project_id)
        return project

    async def delete_project(self, owner_id: int, project_id: int) -> None:
        """Entries filed under the project keep existing with no project"""
        async with self.database.transaction("delete project") as session:
            if not await ProjectRepository(session).delete(owner_id, project_id):
                raise NotFoundError("project", project_id)
        logger.info(f"Deleted project {project_id} of owner {owner_id}")

    # Tags

    async def list_tags(self, owner_id: int) -> List[Tag]:
        async with self.database.session("list tags") as session:
            return await TagRepository(session).get_all(owner_id)

    async def create_tag(self, owner_id: int, name: str, color: Optional[str] = None) -> Tag:
        async with self.database.transaction("create tag") as session:
            tag = await TagRepository(session).create(
                Tag(owner_id=owner_id, name=name, color=color or None)
            )
        logger.info(f"Created tag {tag.id} for owner {owner_id}")
        return tag

    async def update_tag(self, owner_id: int, tag_id: int, name: str,
                         color: Optional[str] = None) -> Tag:
        tag = Tag(id=tag_id, owner_id=owner_id, name=name, color=color or None)
        async with self.database.transaction("update tag") as session:
            if not await TagRepository(session).update(tag):
                raise NotFoundError("tag", tag_id)
        return tag

    async def delete_tag(self, owner_id: int, tag_id: int) -> None:
        """Also drops the tag from every entry it was attached to"""
        async with self.database.transaction("delete tag") as session:
            if not await TagRepository(session).delete(owner_id, tag_id):
                raise NotFoundError("tag", tag_id)
        logger.info(f"Deleted tag {tag_id} of owner {owner_id}")
