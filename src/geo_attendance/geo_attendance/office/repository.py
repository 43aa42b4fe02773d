from __future__ import annotations

from typing import Protocol

from .model import OfficePolicy


class OfficePolicyRepository(Protocol):
    def current_policy(self) -> OfficePolicy:
        """Latest effective office policy."""

        raise NotImplementedError
