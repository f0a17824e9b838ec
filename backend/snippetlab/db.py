from __future__ import annotations

import contextlib
import json
import logging
import re
import sqlite3
import uuid
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from snippetlab.models.snippet import (
    DEFAULT_DIFFICULTY,
    DEFAULT_LANGUAGE_CODE,
    DEFAULT_REVIEW_COUNT,
    LEMMA_MAX_LENGTH,
    PART_OF_SPEECH_MAX_LENGTH,
    RAW_TEXT_MAX_LENGTH,
    SOURCE_CONTEXT_MAX_LENGTH,
    UPDATABLE_FIELDS,
)

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"[0-9a-f]{32}")


class SnippetValidationError(ValueError):
    """Raised when snippet fields are missing, mistyped or out of bounds."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
        self.message = message


class SnippetNotFoundError(LookupError):
    """Raised when no snippet exists for an id (malformed ids included)."""

    def __init__(self, snippet_id: str):
        super().__init__(f"Snippet {snippet_id} not found")
        self.snippet_id = snippet_id


class StoreError(Exception):
    """Raised when the underlying database fails. Nothing is partially written."""


def utc_now_iso() -> str:
    # Microsecond resolution keeps newest-first ordering stable for rapid captures
    return datetime.now(UTC).isoformat()


def new_snippet_id() -> str:
    return uuid.uuid4().hex


def is_valid_snippet_id(snippet_id: str) -> bool:
    return isinstance(snippet_id, str) and _ID_PATTERN.fullmatch(snippet_id) is not None


def _connect(db_path: Path) -> sqlite3.Connection:
    """Create a database connection with proper configuration.

    Uses IMMEDIATE isolation so a read-modify-write (update) holds the
    write lock from its first statement, and a generous timeout for
    concurrent access.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(db_path),
        timeout=30.0,
        isolation_level="IMMEDIATE"
    )
    conn.row_factory = sqlite3.Row
    return conn


@contextlib.contextmanager
def _session(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Open a connection, commit on success, roll back and wrap errors on failure."""
    try:
        conn = _connect(db_path)
    except (sqlite3.Error, OSError) as e:
        raise StoreError(f"Could not open snippet store: {e}") from e
    try:
        with conn:
            yield conn
    except sqlite3.Error as e:
        logger.error(f"Snippet store operation failed: {e}", exc_info=True)
        raise StoreError(f"Snippet store operation failed: {e}") from e
    finally:
        conn.close()


def init_db(db_path: Path) -> None:
    with _session(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS snippets (
                id TEXT PRIMARY KEY,
                raw_text TEXT NOT NULL,
                lemma TEXT,
                part_of_speech TEXT,
                language_code TEXT NOT NULL DEFAULT 'en',
                source_context TEXT NOT NULL,
                tags_json TEXT NOT NULL DEFAULT '[]',
                user_id TEXT,
                difficulty REAL NOT NULL DEFAULT 0.5,
                next_review_utc TEXT,
                review_count INTEGER NOT NULL DEFAULT 0,
                created_at_utc TEXT NOT NULL,
                updated_at_utc TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_snippets_language ON snippets(language_code)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_snippets_user_created ON snippets(user_id, created_at_utc DESC)"
        )


@dataclass(frozen=True)
class SnippetRow:
    id: str
    raw_text: str
    lemma: str | None
    part_of_speech: str | None
    language_code: str
    source_context: str
    tags: tuple[str, ...]
    created_at_utc: str
    updated_at_utc: str
    # Reserved spaced-repetition fields
    difficulty: float = DEFAULT_DIFFICULTY
    next_review_utc: str | None = None
    review_count: int = DEFAULT_REVIEW_COUNT
    user_id: str | None = None


def _row_to_snippet(row: sqlite3.Row) -> SnippetRow:
    tags: tuple[str, ...] = ()
    with contextlib.suppress(json.JSONDecodeError, TypeError):
        decoded = json.loads(row["tags_json"])
        if isinstance(decoded, list):
            tags = tuple(str(t) for t in decoded)
    return SnippetRow(
        id=row["id"],
        raw_text=row["raw_text"],
        lemma=row["lemma"],
        part_of_speech=row["part_of_speech"],
        language_code=row["language_code"],
        source_context=row["source_context"],
        tags=tags,
        created_at_utc=row["created_at_utc"],
        updated_at_utc=row["updated_at_utc"],
        difficulty=row["difficulty"],
        next_review_utc=row["next_review_utc"],
        review_count=row["review_count"],
        user_id=row["user_id"],
    )


# =============================================================================
# Validation
# =============================================================================


def _require_text(fields: Mapping[str, Any], name: str, label: str, max_length: int) -> None:
    value = fields.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise SnippetValidationError(f"{label} is required", field=label)
    if not isinstance(value, str):
        raise SnippetValidationError(f"{label} must be a string", field=label)
    if len(value) > max_length:
        raise SnippetValidationError(
            f"{label} exceeds {max_length:,} character limit", field=label
        )


def _optional_text(fields: Mapping[str, Any], name: str, label: str, max_length: int) -> None:
    value = fields.get(name)
    if value is None:
        return
    if not isinstance(value, str):
        raise SnippetValidationError(f"{label} must be a string", field=label)
    if len(value) > max_length:
        raise SnippetValidationError(
            f"{label} exceeds {max_length:,} character limit", field=label
        )


def validate_snippet_fields(fields: Mapping[str, Any]) -> None:
    """Check a complete snippet field set against the schema bounds.

    Applied to the create payload and to the merged record of an update, so
    no write can leave a stored snippet outside these bounds.
    """
    _require_text(fields, "raw_text", "rawText", RAW_TEXT_MAX_LENGTH)
    _require_text(fields, "source_context", "sourceContext", SOURCE_CONTEXT_MAX_LENGTH)
    _optional_text(fields, "lemma", "lemma", LEMMA_MAX_LENGTH)
    _optional_text(fields, "part_of_speech", "partOfSpeech", PART_OF_SPEECH_MAX_LENGTH)

    language_code = fields.get("language_code")
    if not isinstance(language_code, str) or not language_code.strip():
        raise SnippetValidationError("languageCode must be a non-empty string", field="languageCode")

    if len(fields["raw_text"].strip()) > len(fields["source_context"]):
        raise SnippetValidationError(
            "rawText cannot be longer than sourceContext", field="rawText"
        )

    tags = fields.get("tags")
    if not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags):
        raise SnippetValidationError("tags must be a list of strings", field="tags")

    difficulty = fields.get("difficulty")
    if isinstance(difficulty, bool) or not isinstance(difficulty, (int, float)) or not 0 <= difficulty <= 1:
        raise SnippetValidationError("difficulty must be a number between 0 and 1", field="difficulty")

    review_count = fields.get("review_count")
    if isinstance(review_count, bool) or not isinstance(review_count, int) or review_count < 0:
        raise SnippetValidationError("reviewCount must be a non-negative integer", field="reviewCount")


# =============================================================================
# Snippet CRUD
# =============================================================================


def create_snippet(
    db_path: Path,
    *,
    raw_text: Any = None,
    source_context: Any = None,
    lemma: Any = None,
    part_of_speech: Any = None,
    language_code: Any = None,
    tags: Any = None,
    user_id: str | None = None,
    difficulty: Any = DEFAULT_DIFFICULTY,
    next_review_utc: str | None = None,
    review_count: Any = DEFAULT_REVIEW_COUNT,
) -> SnippetRow:
    """Validate and insert a new snippet. Raises SnippetValidationError on bad input."""
    fields: dict[str, Any] = {
        "raw_text": raw_text,
        "source_context": source_context,
        "lemma": lemma,
        "part_of_speech": part_of_speech,
        "language_code": language_code or DEFAULT_LANGUAGE_CODE,
        "tags": [] if tags is None else tags,
        "difficulty": difficulty,
        "review_count": review_count,
    }
    validate_snippet_fields(fields)

    snippet_id = new_snippet_id()
    now = utc_now_iso()
    with _session(db_path) as conn:
        conn.execute(
            """
            INSERT INTO snippets(
                id, raw_text, lemma, part_of_speech, language_code, source_context,
                tags_json, user_id, difficulty, next_review_utc, review_count,
                created_at_utc, updated_at_utc
            )
            VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                snippet_id,
                fields["raw_text"],
                fields["lemma"],
                fields["part_of_speech"],
                fields["language_code"],
                fields["source_context"],
                json.dumps(list(fields["tags"]), ensure_ascii=False),
                user_id,
                float(fields["difficulty"]),
                next_review_utc,
                fields["review_count"],
                now,
                now,
            ),
        )
        row = conn.execute("SELECT * FROM snippets WHERE id = ?", (snippet_id,)).fetchone()
    logger.info(f"Created snippet {snippet_id} ({fields['language_code']})")
    return _row_to_snippet(row)


def get_snippet(db_path: Path, snippet_id: str) -> SnippetRow | None:
    if not is_valid_snippet_id(snippet_id):
        return None
    with _session(db_path) as conn:
        row = conn.execute("SELECT * FROM snippets WHERE id = ?", (snippet_id,)).fetchone()
        return _row_to_snippet(row) if row else None


def list_snippets(
    db_path: Path,
    *,
    language_code: str | None = None,
    tag: str | None = None,
    limit: int | None = None,
) -> list[SnippetRow]:
    """List snippets newest first, optionally filtered by language and tag."""
    clauses: list[str] = []
    params: list[Any] = []
    if language_code:
        clauses.append("language_code = ?")
        params.append(language_code)
    if tag:
        clauses.append("EXISTS (SELECT 1 FROM json_each(snippets.tags_json) WHERE json_each.value = ?)")
        params.append(tag)

    query = "SELECT * FROM snippets"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY created_at_utc DESC, rowid DESC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    with _session(db_path) as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_snippet(r) for r in rows]


def update_snippet(db_path: Path, snippet_id: str, **updates: Any) -> SnippetRow | None:
    """Apply a partial update. Returns None if the snippet does not exist.

    Only UPDATABLE_FIELDS are applied; identity, source context, timestamps
    and the reserved review fields are never touched here. The merged record
    is re-validated with the same rules as create.
    """
    if not is_valid_snippet_id(snippet_id):
        return None
    updates = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}

    with _session(db_path) as conn:
        # Hold the write lock across read, merge and write
        conn.execute("BEGIN IMMEDIATE")
        row = conn.execute("SELECT * FROM snippets WHERE id = ?", (snippet_id,)).fetchone()
        if row is None:
            return None
        current = _row_to_snippet(row)
        merged: dict[str, Any] = {
            "raw_text": current.raw_text,
            "source_context": current.source_context,
            "lemma": current.lemma,
            "part_of_speech": current.part_of_speech,
            "language_code": current.language_code,
            "tags": list(current.tags),
            "difficulty": current.difficulty,
            "review_count": current.review_count,
        }
        merged.update(updates)
        validate_snippet_fields(merged)

        conn.execute(
            """
            UPDATE snippets
            SET raw_text = ?,
                lemma = ?,
                part_of_speech = ?,
                language_code = ?,
                tags_json = ?,
                updated_at_utc = ?
            WHERE id = ?
            """,
            (
                merged["raw_text"],
                merged["lemma"],
                merged["part_of_speech"],
                merged["language_code"],
                json.dumps(list(merged["tags"]), ensure_ascii=False),
                utc_now_iso(),
                snippet_id,
            ),
        )
        row = conn.execute("SELECT * FROM snippets WHERE id = ?", (snippet_id,)).fetchone()
    logger.info(f"Updated snippet {snippet_id} fields={sorted(updates)}")
    return _row_to_snippet(row)


def delete_snippet(db_path: Path, snippet_id: str) -> str | None:
    """Delete a snippet. Returns its id, or None if nothing was deleted."""
    if not is_valid_snippet_id(snippet_id):
        return None
    with _session(db_path) as conn:
        cursor = conn.execute("DELETE FROM snippets WHERE id = ?", (snippet_id,))
        deleted = cursor.rowcount > 0
    if deleted:
        logger.info(f"Deleted snippet {snippet_id}")
        return snippet_id
    return None


def ping(db_path: Path) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        with _session(db_path) as conn:
            conn.execute("SELECT 1").fetchone()
    except StoreError:
        return False
    return True
