"""
Batch import pipeline: raw CSV text -> preview -> committed records.

One ImportSession walks Input -> Preview -> Result, with Preview -> Input
allowed. Row failures never abort the batch; only structurally empty input
does.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional

from hrtrain.models.domain import Course, User
from hrtrain.models.enums import ImportStage
from hrtrain.services.errors import RefusalError, PersistenceError
from hrtrain.services.normalizer import HEADER_LABEL, RowRejection, normalize_row

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Accepted records and rejected rows of one parse, in input order."""
    accepted: List[Course]
    rejected: List[RowRejection]

    @property
    def accepted_count(self) -> int:
        return len(self.accepted)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)


@dataclass
class BatchOutcome:
    """Success/failure counts of a batch operation."""
    succeeded: int
    failed: int
    error: Optional[str] = None


def parse_batch(text: str, principal: User, today: Optional[date] = None) -> ParseResult:
    """
    Validate every row of a raw multi-line input.

    Row numbers are 1-based line numbers of the trimmed input, header included.
    Blank lines are skipped silently.

    Raises RefusalError if the input is empty or yields no rows at all.
    """
    if not text or not text.strip():
        raise RefusalError("No data provided. Paste rows or upload a CSV file.")

    lines = text.strip().split("\n")
    start_index = 1 if HEADER_LABEL in lines[0] else 0

    accepted: List[Course] = []
    rejected: List[RowRejection] = []

    for index in range(start_index, len(lines)):
        line = lines[index].strip()
        if not line:
            continue

        outcome = normalize_row(line, index + 1, principal, today=today)
        # Keep going after any rejection
        if isinstance(outcome, RowRejection):
            rejected.append(outcome)
        else:
            accepted.append(outcome)

    if not accepted and not rejected:
        raise RefusalError("No rows could be parsed. Please check the format.")

    return ParseResult(accepted=accepted, rejected=rejected)


def decode_upload(content: bytes) -> str:
    """Decode an uploaded CSV file. A UTF-8 byte-order mark is tolerated."""
    return content.decode("utf-8-sig").replace("\r\n", "\n").replace("\r", "\n")


class ImportSession:
    """
    One batch-import workflow for one principal.

    Invariants:
    - Commit is only possible from Preview
    - A failed commit stays in Preview with the parsed result intact
    - Result is terminal
    """

    def __init__(self, principal: User, session_id: Optional[str] = None):
        self.id = session_id or str(uuid.uuid4())
        self.principal = principal
        self.principal_id = principal.id
        self.stage = ImportStage.INPUT
        self.text = ""
        self.result: Optional[ParseResult] = None
        self.error: Optional[str] = None

    def load_text(self, text: str) -> None:
        self._require_stage(ImportStage.INPUT, "load input")
        self.text = text or ""
        self.error = None

    def load_file(self, content: bytes) -> None:
        try:
            text = decode_upload(content)
        except UnicodeDecodeError:
            self.error = "Failed to read the uploaded file (expected UTF-8 text)."
            raise RefusalError(self.error)
        self.load_text(text)

    def parse(self, today: Optional[date] = None) -> ParseResult:
        """Input -> Preview. Structural failures leave the session in Input with an error."""
        self._require_stage(ImportStage.INPUT, "parse")
        try:
            result = parse_batch(self.text, self.principal, today=today)
        except RefusalError as e:
            self.error = e.message
            raise

        self.result = result
        self.error = None
        self.stage = ImportStage.PREVIEW
        logger.info(
            "Import %s parsed for %s: %d accepted, %d rejected",
            self.id, self.principal.id, result.accepted_count, result.rejected_count
        )
        return result

    def back(self) -> None:
        """Preview -> Input, keeping the raw text for editing."""
        self._require_stage(ImportStage.PREVIEW, "go back")
        self.stage = ImportStage.INPUT
        self.error = None

    def commit(self, store) -> BatchOutcome:
        """
        Preview -> Result: hand the accepted records to the persistence collaborator.

        On collaborator failure the session stays in Preview so the commit can
        be retried without re-parsing.
        """
        self._require_stage(ImportStage.PREVIEW, "commit")
        if not self.result.accepted:
            raise RefusalError("There are no valid records to import.")

        try:
            store.batch_upsert(self.result.accepted)
        except Exception as e:
            logger.exception("Import %s commit failed", self.id)
            self.error = f"Import failed: {e}"
            raise PersistenceError(self.error, [c.id for c in self.result.accepted]) from e

        self.error = None
        self.stage = ImportStage.RESULT
        logger.info("Import %s committed %d records", self.id, self.result.accepted_count)
        return BatchOutcome(
            succeeded=self.result.accepted_count,
            failed=self.result.rejected_count
        )

    def _require_stage(self, stage: ImportStage, action: str) -> None:
        if self.stage != stage:
            raise RefusalError(
                f"Cannot {action} while the import is in the {self.stage.value} stage."
            )


class ImportSessionRegistry:
    """
    Import sessions kept between requests, owned by the application object.

    Sessions are bound to the principal that started them. A session not
    touched for ttl_seconds is dropped on the next open or get.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, ImportSession] = {}
        self._last_used: Dict[str, float] = {}

    def open(self, principal: User) -> ImportSession:
        self.expire_idle()
        session = ImportSession(principal)
        self._sessions[session.id] = session
        self._last_used[session.id] = self._clock()
        return session

    def get(self, session_id: str, principal: User) -> Optional[ImportSession]:
        self.expire_idle()
        session = self._sessions.get(session_id)
        if session is None or session.principal_id != principal.id:
            return None
        # Rebind to the principal loaded for the current request
        session.principal = principal
        self._last_used[session_id] = self._clock()
        return session

    def close(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._last_used.pop(session_id, None)

    def expire_idle(self) -> int:
        """Drop sessions idle for longer than the TTL. Returns how many were dropped."""
        cutoff = self._clock() - self.ttl_seconds
        stale = [sid for sid, used in self._last_used.items() if used < cutoff]
        for session_id in stale:
            self.close(session_id)
        if stale:
            logger.info("Expired %d idle import sessions", len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._sessions)
