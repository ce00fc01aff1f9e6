"""SQLiteSubscriptionStore — durable, single-file storage backend using aiosqlite."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import date, datetime
from typing import Any

import aiosqlite

from optin_manager._internal.clock import Clock, SystemClock
from optin_manager.exceptions import StoreError, UniquenessError
from optin_manager.stores.base import Predicate, SubscriptionStore
from optin_manager.subscription import EMAIL_MAX_LENGTH, TOKEN_MAX_LENGTH, Subscription

_SCHEMA = (
    f"""
    CREATE TABLE IF NOT EXISTS subscriptions (
        id                 INTEGER PRIMARY KEY AUTOINCREMENT,
        email              VARCHAR({EMAIL_MAX_LENGTH}) NOT NULL
                           CHECK (length(email) <= {EMAIL_MAX_LENGTH}),
        confirmation_token VARCHAR({TOKEN_MAX_LENGTH}) NOT NULL
                           CHECK (length(confirmation_token) <= {TOKEN_MAX_LENGTH}),
        confirmed          BOOLEAN NOT NULL DEFAULT 0,
        start_on           DATE NOT NULL,
        created_at         TEXT NOT NULL
    )
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS index_subscriptions_on_email "
    "ON subscriptions (email)",
    "CREATE UNIQUE INDEX IF NOT EXISTS index_subscriptions_on_confirmation_token "
    "ON subscriptions (confirmation_token)",
)

_COLUMNS = "id, email, confirmation_token, confirmed, start_on, created_at"


def _row_to_subscription(row: Any) -> Subscription:
    return Subscription(
        id=row[0],
        email=row[1],
        confirmation_token=row[2],
        confirmed=bool(row[3]),
        start_on=date.fromisoformat(row[4]),
        created_at=datetime.fromisoformat(row[5]),
    )


def _unique_violation(exc: sqlite3.IntegrityError) -> str | None:
    """Return the column named by a UNIQUE failure, or ``None``."""
    message = str(exc)
    if "UNIQUE constraint failed" not in message:
        return None
    for column in ("confirmation_token", "email"):
        if f"subscriptions.{column}" in message:
            return column
    return None


class SQLiteSubscriptionStore(SubscriptionStore):
    """Persistent store backed by a single SQLite file.

    Uniqueness and not-null constraints are enforced by the database
    itself, so concurrent writers are arbitrated by SQLite.

    All operations share one connection, and with it one transaction.
    Each write therefore holds ``_write_lock`` from its statement through
    commit or rollback and the read-back, so a failed write never rolls
    back another coroutine's uncommitted row.

    Parameters:
        db_path: Path to the SQLite database file.  Use ``":memory:"``
                 for an in-memory database (useful for testing).
        clock:   Supplies ``created_at`` for inserted records.
    """

    def __init__(self, db_path: str = "subscriptions.db", clock: Clock | None = None) -> None:
        self._db_path = db_path
        self._clock = clock or SystemClock()
        self._db: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    async def _connect(self) -> aiosqlite.Connection:
        async with self._connect_lock:
            if self._db is None:
                db = await aiosqlite.connect(self._db_path)
                for statement in _SCHEMA:
                    await db.execute(statement)
                await db.commit()
                self._db = db
        return self._db

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    # ── Store protocol ───────────────────────────────────────

    async def insert(self, subscription: Subscription) -> Subscription:
        self._check_not_null(subscription)
        if subscription.start_on is None:
            raise StoreError("insert", "start_on may not be null")
        created_at = subscription.created_at or self._clock.now()
        db = await self._connect()
        async with self._write_lock:
            try:
                cursor = await db.execute(
                    "INSERT INTO subscriptions "
                    "(email, confirmation_token, confirmed, start_on, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        subscription.email,
                        subscription.confirmation_token,
                        int(subscription.confirmed),
                        subscription.start_on.isoformat(),
                        created_at.isoformat(),
                    ),
                )
                await db.commit()
            except sqlite3.IntegrityError as exc:
                await db.rollback()
                column = _unique_violation(exc)
                if column is not None:
                    raise UniquenessError("insert", column) from exc
                raise StoreError("insert", str(exc)) from exc
            except sqlite3.Error as exc:
                await db.rollback()
                raise StoreError("insert", str(exc)) from exc

            inserted = await self._fetch_one("id = ?", (cursor.lastrowid,))
        if inserted is None:
            raise StoreError("insert", "inserted row could not be read back")
        return inserted

    async def find_by_token(self, token: str) -> Subscription | None:
        return await self._fetch_one("confirmation_token = ?", (token,))

    async def find_by_email(self, email: str) -> Subscription | None:
        return await self._fetch_one("email = ?", (email,))

    async def update(self, subscription: Subscription) -> Subscription:
        db = await self._connect()
        start_on = subscription.start_on.isoformat() if subscription.start_on else None
        async with self._write_lock:
            try:
                cursor = await db.execute(
                    "UPDATE subscriptions SET email = ?, "
                    "start_on = COALESCE(?, start_on), "
                    "confirmed = MAX(confirmed, ?) "
                    "WHERE id = ?",
                    (subscription.email, start_on, int(subscription.confirmed), subscription.id),
                )
                await db.commit()
            except sqlite3.IntegrityError as exc:
                await db.rollback()
                column = _unique_violation(exc)
                if column is not None:
                    raise UniquenessError("update", column) from exc
                raise StoreError("update", str(exc)) from exc
            except sqlite3.Error as exc:
                await db.rollback()
                raise StoreError("update", str(exc)) from exc

            if cursor.rowcount == 0:
                raise StoreError("update", f"no subscription with id {subscription.id}")
            updated = await self._fetch_one("id = ?", (subscription.id,))
        if updated is None:
            raise StoreError("update", f"no subscription with id {subscription.id}")
        return updated

    async def delete(self, subscription_id: int) -> None:
        db = await self._connect()
        async with self._write_lock:
            try:
                await db.execute("DELETE FROM subscriptions WHERE id = ?", (subscription_id,))
                await db.commit()
            except sqlite3.Error as exc:
                await db.rollback()
                raise StoreError("delete", str(exc)) from exc

    async def find_all_where(self, predicate: Predicate) -> list[Subscription]:
        rows = await self._fetch_all("1 = 1", ())
        return [row for row in rows if predicate(row)]

    async def exists(self, *, email: str | None = None, token: str | None = None) -> bool:
        clauses: list[str] = []
        params: list[Any] = []
        if email is not None:
            clauses.append("email = ?")
            params.append(email)
        if token is not None:
            clauses.append("confirmation_token = ?")
            params.append(token)
        where = " AND ".join(clauses) or "1 = 1"
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"SELECT 1 FROM subscriptions WHERE {where} LIMIT 1",
                tuple(params),
            )
            return (await cursor.fetchone()) is not None
        except sqlite3.Error as exc:
            raise StoreError("exists", str(exc)) from exc

    # ── helpers ──────────────────────────────────────────────

    async def _fetch_all(self, where: str, params: tuple[Any, ...]) -> list[Subscription]:
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM subscriptions WHERE {where}",
                params,
            )
            rows = await cursor.fetchall()
        except sqlite3.Error as exc:
            raise StoreError("select", str(exc)) from exc
        return [_row_to_subscription(row) for row in rows]

    async def _fetch_one(self, where: str, params: tuple[Any, ...]) -> Subscription | None:
        rows = await self._fetch_all(where, params)
        return rows[0] if rows else None
