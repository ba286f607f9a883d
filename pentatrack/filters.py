from __future__ import annotations

from typing import Iterable, List, Optional

from .constants import ROLES
from .models import TrainingSession
from .scope import ScopeWindow


def filter_sessions(
    sessions: Iterable[TrainingSession],
    subject_id: Optional[str],
    scope: Optional[ScopeWindow],
) -> List[TrainingSession]:
    """
    Narrow sessions to one athlete and, when given, an inclusive scope window.

    With no subject selected (a coach who has not picked an athlete yet) the
    result is simply empty.
    """
    if subject_id is None:
        return []
    return [
        session
        for session in sessions
        if session.subject_id == subject_id and (scope is None or scope.contains(session.date))
    ]


def resolve_subject(viewer_id: str, role: str, selected_id: Optional[str] = None) -> Optional[str]:
    """
    Decide whose sessions a viewer is looking at.

    Athletes only ever see their own data; coaches see the athlete they picked,
    or nobody until they pick one.
    """
    if role not in ROLES:
        raise ValueError(f"role must be one of {', '.join(ROLES)}; received {role!r}.")
    if role == "athlete":
        return viewer_id
    return selected_id or None
