"""
In-memory chunk sessions: one per uploaded document, keyed by a server-issued id.
Process-local and not persisted; a restart forgets every session.
"""
import asyncio
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Sequence

from pdf_mcq.errors import NoActiveSession, NoMoreChunks

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 100


@dataclass(frozen=True)
class SessionStatus:
    has_more: bool
    current_chunk: int  # 1-based
    total_chunks: int


class ChunkSession:
    """Ordered chunks of one document plus the cursor of the last chunk delivered."""

    def __init__(self, chunks: Sequence[str] | None = None):
        self._chunks: tuple[str, ...] = ()
        self._cursor = 0
        # Serialises advance + generate so a session's batches come out in chunk order.
        self.lock = asyncio.Lock()
        if chunks is not None:
            self.start(chunks)

    def start(self, chunks: Sequence[str]) -> None:
        self._chunks = tuple(chunks)
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def total_chunks(self) -> int:
        return len(self._chunks)

    def current_chunk(self) -> str:
        if not self._chunks:
            raise NoActiveSession("No document has been processed")
        return self._chunks[self._cursor]

    def advance(self) -> str:
        if not self._chunks:
            raise NoActiveSession("No document has been processed")
        if self._cursor >= len(self._chunks) - 1:
            raise NoMoreChunks("No more chunks available")
        self._cursor += 1
        return self._chunks[self._cursor]

    def status(self) -> SessionStatus:
        total = len(self._chunks)
        return SessionStatus(
            has_more=self._cursor < total - 1,
            current_chunk=self._cursor + 1 if total else 0,
            total_chunks=total,
        )


class SessionStore:
    """
    session_id -> ChunkSession, oldest evicted past max_sessions.
    get(None) returns the most recent session for clients that do not send an id.
    """

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS):
        if max_sessions < 1:
            raise ValueError("max_sessions must be >= 1")
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ChunkSession]" = OrderedDict()
        self._latest_id: str | None = None

    def create(self, chunks: Sequence[str]) -> tuple[str, ChunkSession]:
        session_id = uuid.uuid4().hex
        session = ChunkSession(chunks)
        self._sessions[session_id] = session
        self._latest_id = session_id
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("Session store full; evicted session %s", evicted)
        logger.info("Session %s started with %s chunk(s)", session_id, session.total_chunks)
        return session_id, session

    def resolve_id(self, session_id: str | None) -> str:
        sid = (session_id or "").strip() or self._latest_id
        if not sid or sid not in self._sessions:
            raise NoActiveSession(
                "No active session. Upload a document first.",
                details={"sessionId": session_id} if session_id else None,
            )
        return sid

    def get(self, session_id: str | None = None) -> ChunkSession:
        return self._sessions[self.resolve_id(session_id)]

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
