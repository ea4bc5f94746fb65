"""
Repository for directory reads.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labmonitor.models.person import Person


class PersonRepository:
    """Read-only access to lab members."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, person_id: UUID) -> Optional[Person]:
        result = await self.db.execute(select(Person).where(Person.id == person_id))
        return result.scalar_one_or_none()
    
    async def list_by_roles(self, roles: List[str], active_only: bool = True) -> List[Person]:
        """Get persons holding any of the given roles."""
        query = select(Person).where(Person.role.in_(roles))
        if active_only:
            query = query.where(Person.is_active.is_(True))
        query = query.order_by(Person.last_name, Person.first_name)
        result = await self.db.execute(query)
        return list(result.scalars().all())
