"""Project and tag CRUD routes."""

from fastapi import APIRouter, Depends

from timekeeper.api.auth import User, get_current_user
from timekeeper.api.dependencies import get_catalog_service
from timekeeper.api.schemas import (CatalogItem, ErrorResponse, OkResponse, ProjectsResponse,
                                    ProjectUpsert, TagsResponse, TagUpsert)
from timekeeper.services import CatalogService

projects_router = APIRouter(prefix="/projects", tags=["Projects"])
tags_router = APIRouter(prefix="/tags", tags=["Tags"])

NOT_FOUND = {404: {"description": "Not found or not yours", "model": ErrorResponse}}


@projects_router.get("", response_model=ProjectsResponse)
async def list_projects(
    user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    projects = await catalog.list_projects(user.id)
    return ProjectsResponse(projects=[CatalogItem.model_validate(p) for p in projects])


@projects_router.post("", response_model=CatalogItem)
async def create_project(
    body: ProjectUpsert,
    user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    project = await catalog.create_project(user.id, body.name, body.color)
    return CatalogItem.model_validate(project)


@projects_router.put("/{project_id}", response_model=CatalogItem, responses=NOT_FOUND)
async def update_project(
    project_id: int,
    body: ProjectUpsert,
    user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    project = await catalog.update_project(user.id, project_id, body.name, body.color)
    return CatalogItem.model_validate(project)


@projects_router.delete("/{project_id}", response_model=OkResponse, responses=NOT_FOUND)
async def delete_project(
    project_id: int,
    user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    await catalog.delete_project(user.id, project_id)
    return OkResponse()


@tags_router.get("", response_model=TagsResponse)
async def list_tags(
    user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    tags = await catalog.list_tags(user.id)
    return TagsResponse(tags=[CatalogItem.model_validate(t) for t in tags])


@tags_router.post("", response_model=CatalogItem)
async def create_tag(
    body: TagUpsert,
    user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    tag = await catalog.create_tag(user.id, body.name, body.color)
    return CatalogItem.model_validate(tag)


@tags_router.put("/{tag_id}", response_model=CatalogItem, responses=NOT_FOUND)
async def update_tag(
    tag_id: int,
    body: TagUpsert,
    user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    tag = await catalog.update_tag(user.id, tag_id, body.name, body.color)
    return CatalogItem.model_validate(tag)


@tags_router.delete("/{tag_id}", response_model=OkResponse, responses=NOT_FOUND)
async def delete_tag(
    tag_id: int,
    user: User = Depends(get_current_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    await catalog.delete_tag(user.id, tag_id)
    return OkResponse()
