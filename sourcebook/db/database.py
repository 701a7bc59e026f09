"""SQLite record store via aiosqlite."""

from __future__ import annotations

from datetime import date, datetime, timezone

import aiosqlite

from sourcebook.models.drive_token import DriveToken
from sourcebook.models.source import Source
from sourcebook.models.workspace import Note, NoteFormat, Priority, Project, Task

SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sources (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    size INTEGER NOT NULL,
    file_path TEXT NOT NULL,
    uploaded_at TEXT NOT NULL,
    project_id TEXT REFERENCES projects(id)
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    priority TEXT NOT NULL DEFAULT 'medium',
    category TEXT,
    due_date TEXT,
    completed INTEGER NOT NULL DEFAULT 0,
    sort_order INTEGER NOT NULL DEFAULT 0,
    project_id TEXT REFERENCES projects(id),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS notes (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    format TEXT NOT NULL DEFAULT 'html',
    source_question TEXT,
    project_id TEXT REFERENCES projects(id),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS drive_tokens (
    user_id TEXT PRIMARY KEY,
    access_token TEXT NOT NULL,
    refresh_token TEXT,
    expires_at TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _scope(project_id: str | None) -> tuple[str, tuple]:
    if project_id is None:
        return "", ()
    return " WHERE project_id = ?", (project_id,)


class Database:
    """Async SQLite store for workspace records."""

    def __init__(self, path: str = "sourcebook.db") -> None:
        self.path = path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._db = await aiosqlite.connect(self.path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not connected, call connect() first")
        return self._db

    # -- Projects --

    async def create_project(self, project: Project) -> str:
        await self.db.execute(
            "INSERT INTO projects (id, name, created_at) VALUES (?, ?, ?)",
            (project.id, project.name, _iso(project.created_at)),
        )
        await self.db.commit()
        return project.id

    # -- Sources --

    async def add_source(self, source: Source) -> str:
        await self.db.execute(
            "INSERT INTO sources (id, name, type, size, file_path, uploaded_at, project_id) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                source.id,
                source.name,
                source.mime_type,
                source.size,
                source.file_path,
                _iso(source.uploaded_at),
                source.project_id,
            ),
        )
        await self.db.commit()
        return source.id

    async def get_source(self, source_id: str) -> Source | None:
        cursor = await self.db.execute("SELECT * FROM sources WHERE id = ?", (source_id,))
        row = await cursor.fetchone()
        return Source.from_record(dict(row)) if row else None

    async def get_sources(self, source_ids: list[str]) -> list[Source]:
        """Fetch sources by id, in the order given. Unknown ids are dropped."""
        if not source_ids:
            return []
        placeholders = ", ".join("?" for _ in source_ids)
        cursor = await self.db.execute(
            f"SELECT * FROM sources WHERE id IN ({placeholders})", tuple(source_ids)
        )
        by_id = {row["id"]: Source.from_record(dict(row)) for row in await cursor.fetchall()}
        return [by_id[sid] for sid in dict.fromkeys(source_ids) if sid in by_id]

    async def recent_sources(self, project_id: str | None = None, limit: int = 10) -> list[Source]:
        where, params = _scope(project_id)
        cursor = await self.db.execute(
            f"SELECT * FROM sources{where} ORDER BY uploaded_at DESC LIMIT ?",
            (*params, limit),
        )
        return [Source.from_record(dict(r)) for r in await cursor.fetchall()]

    # -- Tasks --

    async def add_task(self, task: Task) -> str:
        await self.db.execute(
            "INSERT INTO tasks (id, title, description, priority, category, due_date, "
            "completed, sort_order, project_id, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                task.id,
                task.title,
                task.description,
                task.priority.value,
                task.category,
                task.due_date.isoformat() if task.due_date else None,
                int(task.completed),
                task.sort_order,
                task.project_id,
                _iso(task.created_at),
                _iso(task.updated_at),
            ),
        )
        await self.db.commit()
        return task.id

    async def list_tasks(self, project_id: str | None = None) -> list[Task]:
        where, params = _scope(project_id)
        cursor = await self.db.execute(
            f"SELECT * FROM tasks{where} ORDER BY sort_order ASC, created_at DESC", params
        )
        return [
            Task(
                id=r["id"],
                title=r["title"],
                description=r["description"],
                priority=Priority(r["priority"]),
                category=r["category"],
                due_date=date.fromisoformat(r["due_date"]) if r["due_date"] else None,
                completed=bool(r["completed"]),
                sort_order=r["sort_order"],
                project_id=r["project_id"],
                created_at=_parse(r["created_at"]),
                updated_at=_parse(r["updated_at"]),
            )
            for r in await cursor.fetchall()
        ]

    async def reorder_tasks(self, task_ids: list[str]) -> None:
        """Give ``task_ids`` the contiguous order 0..n-1 in list order."""
        now = _iso(datetime.now(timezone.utc))
        await self.db.executemany(
            "UPDATE tasks SET sort_order = ?, updated_at = ? WHERE id = ?",
            [(index, now, task_id) for index, task_id in enumerate(task_ids)],
        )
        await self.db.commit()

    # -- Notes --

    async def add_note(self, note: Note) -> str:
        await self.db.execute(
            "INSERT INTO notes (id, title, content, format, source_question, project_id, "
            "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                note.id,
                note.title,
                note.content,
                note.format.value,
                note.source_question,
                note.project_id,
                _iso(note.created_at),
                _iso(note.updated_at),
            ),
        )
        await self.db.commit()
        return note.id

    async def list_notes(self, project_id: str | None = None) -> list[Note]:
        where, params = _scope(project_id)
        cursor = await self.db.execute(
            f"SELECT * FROM notes{where} ORDER BY created_at DESC", params
        )
        return [
            Note(
                id=r["id"],
                title=r["title"],
                content=r["content"],
                format=NoteFormat(r["format"]),
                source_question=r["source_question"],
                project_id=r["project_id"],
                created_at=_parse(r["created_at"]),
                updated_at=_parse(r["updated_at"]),
            )
            for r in await cursor.fetchall()
        ]

    # -- Drive tokens --

    async def get_drive_token(self, user_id: str) -> DriveToken | None:
        cursor = await self.db.execute(
            "SELECT * FROM drive_tokens WHERE user_id = ?", (user_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return DriveToken(
            user_id=row["user_id"],
            access_token=row["access_token"],
            refresh_token=row["refresh_token"],
            expires_at=_parse(row["expires_at"]),
            created_at=_parse(row["created_at"]),
            updated_at=_parse(row["updated_at"]),
        )

    async def save_drive_token(self, token: DriveToken) -> None:
        await self.db.execute(
            "INSERT INTO drive_tokens "
            "(user_id, access_token, refresh_token, expires_at, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(user_id) DO UPDATE SET "
            "access_token = excluded.access_token, "
            "refresh_token = COALESCE(excluded.refresh_token, drive_tokens.refresh_token), "
            "expires_at = excluded.expires_at, "
            "updated_at = excluded.updated_at",
            (
                token.user_id,
                token.access_token,
                token.refresh_token,
                _iso(token.expires_at),
                _iso(token.created_at),
                _iso(token.updated_at),
            ),
        )
        await self.db.commit()
