from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    employee_id: int
    name: str
    email: str
    role: Role
    is_active: bool = True
