"""
Redirect policy component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from ._impl import Policy


class PolicySourcePort(Protocol):
    """Supplies the currently active policy."""

    def get_policy(self) -> Policy:
        """Get the active policy."""
        ...
