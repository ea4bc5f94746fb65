"""
Outbound notification payload.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OutboundNotification(BaseModel):
    """What the engine hands to the delivery collaborator."""

    recipient_id: UUID
    title: str
    message: str
    # "alert" or "reminder"
    kind: str = "alert"
    related_type: str
    related_id: Optional[UUID] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)
