"""SQLite-backed store for conversations, messages, API keys and models."""

from __future__ import annotations

import sqlite3
import time
import uuid
from pathlib import Path
from typing import Any, Callable, TypeVar

from ifixai.config.default_models import SeedModel, load_default_models
from ifixai.core.errors import ConflictError, NotFoundError
from ifixai.core.models import AgentModel, ApiKeyInfo, Conversation, StoredMessage
from ifixai.util.logger import get_logger


T = TypeVar("T")

logger = get_logger("storage")

_CONVERSATION_COLUMNS = "id, title, agent_type, model, created_at, updated_at"
_MESSAGE_COLUMNS = "id, conversation_id, role, content, image_url, created_at"
_API_KEY_COLUMNS = "id, agent_type, key_name, is_active, created_at"
_MODEL_COLUMNS = "id, agent_type, model_value, model_label, is_default, is_active, display_order, created_at"


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


class SqliteChatStore:
    def __init__(self, db_path: str = "data/ifixai.db", seed_models: bool = True) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db(seed_models)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=5.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA busy_timeout=5000")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _init_db(self, seed_models: bool) -> None:
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS conversations (
                  id TEXT PRIMARY KEY,
                  title TEXT NOT NULL,
                  agent_type TEXT NOT NULL,
                  model TEXT,
                  created_at INTEGER NOT NULL,
                  updated_at INTEGER NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                  id TEXT PRIMARY KEY,
                  conversation_id TEXT NOT NULL,
                  role TEXT NOT NULL,
                  content TEXT NOT NULL,
                  image_url TEXT,
                  created_at INTEGER NOT NULL,
                  FOREIGN KEY (conversation_id) REFERENCES conversations(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS api_keys (
                  id TEXT PRIMARY KEY,
                  agent_type TEXT NOT NULL,
                  key_name TEXT NOT NULL,
                  api_key TEXT NOT NULL,
                  is_active INTEGER DEFAULT 1,
                  created_at INTEGER NOT NULL,
                  UNIQUE(agent_type, key_name)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS agent_models (
                  id TEXT PRIMARY KEY,
                  agent_type TEXT NOT NULL,
                  model_value TEXT NOT NULL,
                  model_label TEXT NOT NULL,
                  is_default INTEGER DEFAULT 0,
                  is_active INTEGER DEFAULT 1,
                  display_order INTEGER DEFAULT 0,
                  created_at INTEGER NOT NULL,
                  UNIQUE(agent_type, model_value)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_messages_conversation_id ON messages(conversation_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_conversations_updated_at ON conversations(updated_at)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_api_keys_agent_type ON api_keys(agent_type)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_agent_models_agent_type ON agent_models(agent_type)")
            conn.commit()

            if seed_models:
                count = conn.execute("SELECT COUNT(*) FROM agent_models").fetchone()[0]
                if int(count) == 0:
                    self._seed_models(conn, load_default_models())
        logger.info("sqlite store initialized path=%s", self.db_path)

    def _seed_models(self, conn: sqlite3.Connection, seeds: list[SeedModel]) -> None:
        created_at = now_ms()
        conn.executemany(
            """
            INSERT INTO agent_models (
              id, agent_type, model_value, model_label, is_default, is_active, display_order, created_at
            )
            VALUES (?, ?, ?, ?, ?, 1, ?, ?)
            """,
            [
                (new_id(), seed.agent_type, seed.value, seed.label, int(seed.is_default), seed.display_order, created_at)
                for seed in seeds
            ],
        )
        conn.commit()
        logger.info("seeded %d default models", len(seeds))

    def _with_retry(self, fn: Callable[[], T], retries: int = 5) -> T:
        for attempt in range(retries):
            try:
                return fn()
            except sqlite3.OperationalError as exc:
                if "locked" not in str(exc).lower() or attempt == retries - 1:
                    raise
                time.sleep(0.01 * (attempt + 1))
        raise RuntimeError("unreachable retry state")

    # conversations

    def list_conversations(self) -> list[Conversation]:
        def _read() -> list[sqlite3.Row]:
            with self._connect() as conn:
                return conn.execute(
                    f"SELECT {_CONVERSATION_COLUMNS} FROM conversations ORDER BY updated_at DESC"
                ).fetchall()

        return [Conversation(**dict(row)) for row in self._with_retry(_read)]

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        def _read() -> sqlite3.Row | None:
            with self._connect() as conn:
                return conn.execute(
                    f"SELECT {_CONVERSATION_COLUMNS} FROM conversations WHERE id = ?",
                    (conversation_id,),
                ).fetchone()

        row = self._with_retry(_read)
        return Conversation(**dict(row)) if row else None

    def require_conversation(self, conversation_id: str) -> Conversation:
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    def create_conversation(self, *, title: str, agent_type: str, model: str | None = None) -> Conversation:
        conversation_id = new_id()
        created_at = now_ms()

        def _write() -> None:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO conversations (id, title, agent_type, model, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (conversation_id, title, agent_type, model or None, created_at, created_at),
                )
                conn.commit()

        self._with_retry(_write)
        return self.require_conversation(conversation_id)

    def update_conversation(self, conversation_id: str, *, title: str | None = None, model: str | None = None) -> Conversation:
        updates: list[str] = []
        values: list[Any] = []
        if title is not None:
            updates.append("title = ?")
            values.append(title)
        if model is not None:
            updates.append("model = ?")
            values.append(model)
        updates.append("updated_at = ?")
        values.append(now_ms())
        values.append(conversation_id)

        def _write() -> int:
            with self._connect() as conn:
                cursor = conn.execute(f"UPDATE conversations SET {', '.join(updates)} WHERE id = ?", values)
                conn.commit()
                return int(cursor.rowcount or 0)

        if self._with_retry(_write) == 0:
            raise NotFoundError("Conversation not found")
        return self.require_conversation(conversation_id)

    def touch_conversation(self, conversation_id: str) -> None:
        def _write() -> None:
            with self._connect() as conn:
                conn.execute("UPDATE conversations SET updated_at = ? WHERE id = ?", (now_ms(), conversation_id))
                conn.commit()

        self._with_retry(_write)

    def delete_conversation(self, conversation_id: str) -> bool:
        def _delete() -> int:
            with self._connect() as conn:
                conn.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
                cursor = conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))
                conn.commit()
                return int(cursor.rowcount or 0)

        return self._with_retry(_delete) > 0

    # messages

    def list_messages(self, conversation_id: str) -> list[StoredMessage]:
        def _read() -> list[sqlite3.Row]:
            with self._connect() as conn:
                return conn.execute(
                    f"""
                    SELECT {_MESSAGE_COLUMNS} FROM messages
                    WHERE conversation_id = ?
                    ORDER BY created_at ASC, rowid ASC
                    """,
                    (conversation_id,),
                ).fetchall()

        return [StoredMessage(**dict(row)) for row in self._with_retry(_read)]

    def add_message(
        self,
        conversation_id: str,
        *,
        role: str,
        content: str,
        image_url: str | None = None,
    ) -> StoredMessage:
        message = StoredMessage(
            id=new_id(),
            conversation_id=conversation_id,
            role=role,
            content=content,
            image_url=image_url or None,
            created_at=now_ms(),
        )

        def _write() -> None:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO messages ({_MESSAGE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        message.id,
                        message.conversation_id,
                        message.role,
                        message.content,
                        message.image_url,
                        message.created_at,
                    ),
                )
                conn.commit()

        try:
            self._with_retry(_write)
        except sqlite3.IntegrityError as exc:
            raise NotFoundError("Conversation not found") from exc
        return message

    # api keys

    def list_api_keys(self, agent_type: str | None = None) -> list[ApiKeyInfo]:
        def _read() -> list[sqlite3.Row]:
            with self._connect() as conn:
                if agent_type is None:
                    return conn.execute(
                        f"SELECT {_API_KEY_COLUMNS} FROM api_keys ORDER BY agent_type, created_at DESC"
                    ).fetchall()
                return conn.execute(
                    f"SELECT {_API_KEY_COLUMNS} FROM api_keys WHERE agent_type = ? ORDER BY created_at DESC",
                    (agent_type,),
                ).fetchall()

        return [ApiKeyInfo(**dict(row)) for row in self._with_retry(_read)]

    def get_api_key(self, key_id: str) -> ApiKeyInfo | None:
        def _read() -> sqlite3.Row | None:
            with self._connect() as conn:
                return conn.execute(f"SELECT {_API_KEY_COLUMNS} FROM api_keys WHERE id = ?", (key_id,)).fetchone()

        row = self._with_retry(_read)
        return ApiKeyInfo(**dict(row)) if row else None

    def add_api_key(self, *, agent_type: str, key_name: str, api_key: str) -> ApiKeyInfo:
        key_id = new_id()

        def _write() -> None:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO api_keys (id, agent_type, key_name, api_key, is_active, created_at)
                    VALUES (?, ?, ?, ?, 1, ?)
                    """,
                    (key_id, agent_type, key_name, api_key, now_ms()),
                )
                conn.commit()

        try:
            self._with_retry(_write)
        except sqlite3.IntegrityError as exc:
            raise ConflictError("API key with this name already exists for this agent") from exc
        created = self.get_api_key(key_id)
        assert created is not None
        return created

    def update_api_key(self, key_id: str, *, key_name: str | None = None, is_active: bool | None = None) -> ApiKeyInfo:
        updates: list[str] = []
        values: list[Any] = []
        if key_name is not None:
            updates.append("key_name = ?")
            values.append(key_name)
        if is_active is not None:
            updates.append("is_active = ?")
            values.append(1 if is_active else 0)
        if not updates:
            raise ValueError("no fields to update")
        values.append(key_id)

        def _write() -> int:
            with self._connect() as conn:
                cursor = conn.execute(f"UPDATE api_keys SET {', '.join(updates)} WHERE id = ?", values)
                conn.commit()
                return int(cursor.rowcount or 0)

        try:
            changed = self._with_retry(_write)
        except sqlite3.IntegrityError as exc:
            raise ConflictError("API key with this name already exists for this agent") from exc
        if changed == 0:
            raise NotFoundError("API key not found")
        updated = self.get_api_key(key_id)
        assert updated is not None
        return updated

    def delete_api_key(self, key_id: str) -> bool:
        def _delete() -> int:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM api_keys WHERE id = ?", (key_id,))
                conn.commit()
                return int(cursor.rowcount or 0)

        return self._with_retry(_delete) > 0

    def get_active_api_key(self, agent_type: str) -> str | None:
        """First active key for *agent_type*, oldest first."""

        def _read() -> sqlite3.Row | None:
            with self._connect() as conn:
                return conn.execute(
                    """
                    SELECT api_key FROM api_keys
                    WHERE agent_type = ? AND is_active = 1
                    ORDER BY created_at ASC, rowid ASC
                    LIMIT 1
                    """,
                    (agent_type,),
                ).fetchone()

        row = self._with_retry(_read)
        return str(row["api_key"]) if row and row["api_key"] else None

    # model registry

    def list_models(self, agent_type: str | None = None) -> list[AgentModel]:
        def _read() -> list[sqlite3.Row]:
            with self._connect() as conn:
                if agent_type is None:
                    return conn.execute(
                        f"""
                        SELECT {_MODEL_COLUMNS} FROM agent_models
                        WHERE is_active = 1
                        ORDER BY agent_type, display_order ASC, created_at ASC
                        """
                    ).fetchall()
                return conn.execute(
                    f"""
                    SELECT {_MODEL_COLUMNS} FROM agent_models
                    WHERE agent_type = ? AND is_active = 1
                    ORDER BY display_order ASC, created_at ASC
                    """,
                    (agent_type,),
                ).fetchall()

        return [AgentModel(**dict(row)) for row in self._with_retry(_read)]

    def get_model(self, model_id: str) -> AgentModel | None:
        def _read() -> sqlite3.Row | None:
            with self._connect() as conn:
                return conn.execute(f"SELECT {_MODEL_COLUMNS} FROM agent_models WHERE id = ?", (model_id,)).fetchone()

        row = self._with_retry(_read)
        return AgentModel(**dict(row)) if row else None

    def add_model(
        self,
        *,
        agent_type: str,
        model_value: str,
        model_label: str,
        is_default: bool = False,
        display_order: int = 0,
    ) -> AgentModel:
        model_id = new_id()

        def _write() -> None:
            with self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                if is_default:
                    conn.execute("UPDATE agent_models SET is_default = 0 WHERE agent_type = ?", (agent_type,))
                conn.execute(
                    """
                    INSERT INTO agent_models (
                      id, agent_type, model_value, model_label, is_default, is_active, display_order, created_at
                    )
                    VALUES (?, ?, ?, ?, ?, 1, ?, ?)
                    """,
                    (model_id, agent_type, model_value, model_label, 1 if is_default else 0, display_order, now_ms()),
                )
                conn.commit()

        try:
            self._with_retry(_write)
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Model with this value already exists for this agent") from exc
        created = self.get_model(model_id)
        assert created is not None
        return created

    def update_model(
        self,
        model_id: str,
        *,
        model_label: str | None = None,
        is_default: bool | None = None,
        is_active: bool | None = None,
        display_order: int | None = None,
    ) -> AgentModel:
        existing = self.get_model(model_id)
        if existing is None:
            raise NotFoundError("Model not found")

        updates: list[str] = []
        values: list[Any] = []
        if model_label is not None:
            updates.append("model_label = ?")
            values.append(model_label)
        if is_default is not None:
            updates.append("is_default = ?")
            values.append(1 if is_default else 0)
        if is_active is not None:
            updates.append("is_active = ?")
            values.append(1 if is_active else 0)
        if display_order is not None:
            updates.append("display_order = ?")
            values.append(int(display_order))
        if not updates:
            raise ValueError("no fields to update")
        values.append(model_id)

        def _write() -> None:
            with self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                if is_default:
                    conn.execute(
                        "UPDATE agent_models SET is_default = 0 WHERE agent_type = ? AND id != ?",
                        (existing.agent_type, model_id),
                    )
                conn.execute(f"UPDATE agent_models SET {', '.join(updates)} WHERE id = ?", values)
                conn.commit()

        self._with_retry(_write)
        updated = self.get_model(model_id)
        assert updated is not None
        return updated

    def delete_model(self, model_id: str) -> bool:
        def _delete() -> int:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM agent_models WHERE id = ?", (model_id,))
                conn.commit()
                return int(cursor.rowcount or 0)

        return self._with_retry(_delete) > 0

    def get_default_model(self, agent_type: str) -> str:
        """Default active model for *agent_type*, else its first active model, else ``""``."""

        def _read() -> sqlite3.Row | None:
            with self._connect() as conn:
                row = conn.execute(
                    """
                    SELECT model_value FROM agent_models
                    WHERE agent_type = ? AND is_default = 1 AND is_active = 1
                    LIMIT 1
                    """,
                    (agent_type,),
                ).fetchone()
                if row is not None:
                    return row
                return conn.execute(
                    """
                    SELECT model_value FROM agent_models
                    WHERE agent_type = ? AND is_active = 1
                    ORDER BY display_order ASC, created_at ASC
                    LIMIT 1
                    """,
                    (agent_type,),
                ).fetchone()

        row = self._with_retry(_read)
        return str(row["model_value"]) if row else ""
