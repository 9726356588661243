"""Request-scoped identity passed explicitly into cart services"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RequestContext:
    """Authenticated caller for a single request"""
    user_id: str
    email: Optional[str] = None
    now: datetime = field(default_factory=datetime.utcnow)
