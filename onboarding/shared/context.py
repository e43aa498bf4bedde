"""
Explicit session context passed to every persistence and finalize call.
"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class SessionContext:
    """Who is onboarding and how to authenticate on their behalf."""
    user_id: str
    access_token: str = ""
    display_name: Optional[str] = None

    def auth_headers(self) -> Dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}
