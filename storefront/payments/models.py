from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class EventType(str, Enum):
    SESSION_COMPLETED = "session_completed"
    ASYNC_PAYMENT_SUCCEEDED = "async_payment_succeeded"
    ASYNC_PAYMENT_FAILED = "async_payment_failed"


class PaymentEvent(BaseModel):
    """Événement webhook vérifié. type=None pour les événements non gérés."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Optional[EventType] = None
    provider_type: str
    created_at: datetime
    session_id: Optional[str] = None


class CreatedSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    client_secret: Optional[str] = None
    url: Optional[str] = None
