"""
Caller identity passed explicitly into every core operation.
"""

from dataclasses import dataclass
from typing import Optional
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Who is issuing a command, and with which role claim."""
    user_id: str
    role: Role = Role.USER
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    
    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
    
    def owns(self, requester_id: str) -> bool:
        return self.user_id == requester_id
