# ============================================================================
# FILE: app/schemas/auth.py
# ============================================================================
from pydantic import BaseModel
from typing import Optional

class AuthContext(BaseModel):
    """Identity of the caller for one request, resolved by a dependency"""
    user_id: Optional[int] = None
    username: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()
