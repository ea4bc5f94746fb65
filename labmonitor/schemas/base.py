"""
Base Pydantic schemas with common fields.

These are templates that other schemas inherit from.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class RecordRead(BaseModel):
    """
    Base schema for reading persisted records.
    
    Includes all the auto-generated fields like id, timestamps, etc.
    """
    
    id: UUID
    created_at: datetime
    updated_at: datetime
    
    # This tells Pydantic to work with SQLAlchemy models
    model_config = ConfigDict(from_attributes=True)
