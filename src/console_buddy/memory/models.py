"""Data models for persisted session data.

These models define what is remembered between runs, independent of the
storage backend used.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from ..conversation.history import from_strings
from ..conversation.models import ConversationTurn
from ..project.models import ProjectInfo


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionData(BaseModel):
    """Everything persisted for a working directory.

    `conversations` is the flat alternating list of user and model texts,
    which is also the legacy on-disk format.
    """

    project_info: ProjectInfo | None = None
    conversations: list[str] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=_now)
    total_sessions: int = 0
    humor_level: int = 0

    @property
    def history(self) -> list[ConversationTurn]:
        """Conversations as typed turns."""
        return from_strings(self.conversations)

    def merged(
        self,
        history: list[ConversationTurn],
        project_info: ProjectInfo | None,
        humor_level: int,
    ) -> "SessionData":
        """Return the data that a save of `history` produces on top of this one.

        The session counter is incremented, stored project info is kept when
        none is given, and the stored humor level is kept when 0 is given.
        """
        return SessionData(
            project_info=project_info if project_info is not None else self.project_info,
            conversations=[turn.text for turn in history],
            last_updated=_now(),
            total_sessions=self.total_sessions + 1,
            humor_level=humor_level if humor_level > 0 else self.humor_level,
        )
