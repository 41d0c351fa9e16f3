"""
Ownership checks for cross-entity references.

An entry may only point at projects and tags owned by the same user.
"""

import logging
from typing import Iterable, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.domain.errors import NotOwnedError
from timekeeper.infra.repository import ProjectRepository, TagRepository

logger = logging.getLogger(__name__)


class OwnershipValidator:
    """
    Confirms referenced rows belong to the acting user.

    Runs on the caller's session so the checks share its transaction.
    """

    def __init__(self, session: AsyncSession):
        self.project_repo = ProjectRepository(session)
        self.tag_repo = TagRepository(session)

    async def validate_project(self, owner_id: int, project_id: Optional[int]) -> None:
        """
        Raises:
            NotOwnedError: if ``project_id`` is set and not a project of ``owner_id``
        """
        if project_id is None:
            return
        if await self.project_repo.get_owned(owner_id, project_id) is None:
            logger.warning(f"Owner {owner_id} referenced foreign project {project_id}")
            raise NotOwnedError("project", [project_id])

    async def validate_tags(self, owner_id: int, tag_ids: Optional[Iterable[int]]) -> Set[int]:
        """
        Deduplicate ``tag_ids`` and check each belongs to ``owner_id``.

        Returns:
            The deduplicated set (empty if nothing was given)

        Raises:
            NotOwnedError: naming the ids that did not resolve
        """
        unique = set(tag_ids or ())
        if not unique:
            return set()

        found = await self.tag_repo.get_owned_ids(owner_id, unique)
        missing = sorted(unique - found)
        if missing:
            logger.warning(f"Owner {owner_id} referenced foreign tags {missing}")
            raise NotOwnedError("tag", missing)
        return unique
