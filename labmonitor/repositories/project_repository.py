"""
Repository for project reads.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.models.project import Project


class ProjectRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active(self) -> List[Project]:
        result = await self.db.execute(
            select(Project).where(Project.status == "active").order_by(Project.name)
        )
        return list(result.scalars().all())
