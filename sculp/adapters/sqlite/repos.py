"""
SQLite repositories.

Implements the component repo ports on top of the schema created by
``migrations/0001_initial.sql``.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any
from uuid import UUID

from sculp.domain.entities import (
    Exercise,
    Folder,
    Mesocycle,
    MesocycleExercise,
    MesocycleSet,
    Routine,
    RoutineExercise,
    RoutineSet,
    Subscription,
    TrainingDay,
    User,
)

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s) if s else None


def parse_uuid(s: str | None) -> UUID | None:
    """Parse UUID string."""
    return UUID(s) if s else None


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None


# -----------------------------------------------------------------------------
# Users & subscriptions
# -----------------------------------------------------------------------------


class SQLiteUserRepo(SQLiteRepoBase):
    """SQLite implementation of UserRepoPort and SubscriberRepoPort."""

    def get_by_id(self, user_id: UUID) -> User | None:
        return self._get_one("SELECT * FROM users WHERE id = ?", str(user_id))

    def get_by_email(self, email: str) -> User | None:
        return self._get_one("SELECT * FROM users WHERE email = ?", email.strip().lower())

    def get_by_stripe_customer_id(self, customer_id: str) -> User | None:
        if not customer_id:
            return None
        return self._get_one("SELECT * FROM users WHERE stripe_customer_id = ?", customer_id)

    def save(self, user: User) -> User:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO users (
                    id, email, password_hash, stripe_customer_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    password_hash=excluded.password_hash,
                    stripe_customer_id=excluded.stripe_customer_id,
                    updated_at=excluded.updated_at
                """,
                (
                    str(user.id),
                    user.email.strip().lower(),
                    user.password_hash,
                    user.stripe_customer_id,
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )

            if user.subscription is None:
                conn.execute("DELETE FROM subscriptions WHERE user_id = ?", (str(user.id),))
            else:
                sub = user.subscription
                conn.execute(
                    """
                    INSERT INTO subscriptions (
                        user_id, stripe_subscription_id, status, current_period_end, updated_at
                    ) VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        stripe_subscription_id=excluded.stripe_subscription_id,
                        status=excluded.status,
                        current_period_end=excluded.current_period_end,
                        updated_at=excluded.updated_at
                    """,
                    (
                        str(user.id),
                        sub.stripe_subscription_id,
                        sub.status,
                        sub.current_period_end.isoformat() if sub.current_period_end else None,
                        sub.updated_at.isoformat(),
                    ),
                )
            conn.commit()
            return user
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            if self._should_close():
                conn.close()

    def _get_one(self, query: str, param: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute(query, (param,)).fetchone()
            if not row:
                return None
            sub_row = conn.execute(
                "SELECT * FROM subscriptions WHERE user_id = ?", (row["id"],)
            ).fetchone()
            return self._map_row(row, sub_row)
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any], sub_row: dict[str, Any] | None) -> User:
        subscription = None
        if sub_row:
            subscription = Subscription(
                stripe_subscription_id=sub_row["stripe_subscription_id"],
                status=sub_row["status"],
                current_period_end=parse_dt(sub_row["current_period_end"]),
                updated_at=parse_dt(sub_row["updated_at"]) or datetime.min,
            )
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            password_hash=row["password_hash"],
            stripe_customer_id=row["stripe_customer_id"],
            subscription=subscription,
            created_at=parse_dt(row["created_at"]) or datetime.min,
            updated_at=parse_dt(row["updated_at"]) or datetime.min,
        )


# -----------------------------------------------------------------------------
# Exercise catalog
# -----------------------------------------------------------------------------


class SQLiteExerciseRepo(SQLiteRepoBase):
    def list_available(self, user_id: UUID) -> list[Exercise]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM exercises
                WHERE user_id IS NULL OR user_id = ?
                ORDER BY name COLLATE NOCASE ASC
                """,
                (str(user_id),),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def get_by_id(self, exercise_id: UUID) -> Exercise | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM exercises WHERE id = ?", (str(exercise_id),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def get_by_name(self, name: str) -> Exercise | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM exercises WHERE user_id IS NULL AND name = ?", (name,)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def save(self, exercise: Exercise) -> Exercise:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO exercises (id, name, user_id) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET name=excluded.name
                """,
                (
                    str(exercise.id),
                    exercise.name,
                    str(exercise.user_id) if exercise.user_id else None,
                ),
            )
            conn.commit()
            return exercise
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> Exercise:
        return Exercise(id=UUID(row["id"]), name=row["name"], user_id=parse_uuid(row["user_id"]))


# -----------------------------------------------------------------------------
# Folders & routines
# -----------------------------------------------------------------------------


class SQLiteFolderRepo(SQLiteRepoBase):
    def list_by_user(self, user_id: UUID) -> list[Folder]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM folders WHERE user_id = ? ORDER BY position ASC, created_at ASC",
                (str(user_id),),
            ).fetchall()
            return [self._load(conn, r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def get_by_id(self, folder_id: UUID) -> Folder | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM folders WHERE id = ?", (str(folder_id),)
            ).fetchone()
            return self._load(conn, row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def next_position(self, user_id: UUID) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 AS next FROM folders WHERE user_id = ?",
                (str(user_id),),
            ).fetchone()
            return int(row["next"])
        finally:
            if self._should_close():
                conn.close()

    def save(self, folder: Folder) -> Folder:
        """Upsert the folder row. Routines are saved through SQLiteRoutineRepo."""
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO folders (id, user_id, name, notes, position, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    notes=excluded.notes,
                    position=excluded.position
                """,
                (
                    str(folder.id),
                    str(folder.user_id),
                    folder.name,
                    folder.notes,
                    folder.position,
                    folder.created_at.isoformat(),
                ),
            )
            conn.commit()
            return folder
        finally:
            if self._should_close():
                conn.close()

    def delete(self, folder_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM folders WHERE id = ?", (str(folder_id),))
            conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def _load(self, conn: sqlite3.Connection, row: dict[str, Any]) -> Folder:
        routine_rows = conn.execute(
            "SELECT * FROM routines WHERE folder_id = ? ORDER BY position ASC",
            (row["id"],),
        ).fetchall()
        return Folder(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            name=row["name"],
            notes=row["notes"],
            position=row["position"],
            created_at=parse_dt(row["created_at"]) or datetime.min,
            routines=[_load_routine(conn, r) for r in routine_rows],
        )


def _load_routine(conn: sqlite3.Connection, row: dict[str, Any]) -> Routine:
    exercise_rows = conn.execute(
        """
        SELECT re.id, re.notes, e.id AS exercise_id, e.name AS exercise_name,
               e.user_id AS exercise_user_id
        FROM routine_exercises re
        JOIN exercises e ON e.id = re.exercise_id
        WHERE re.routine_id = ?
        ORDER BY re.position ASC
        """,
        (row["id"],),
    ).fetchall()

    exercises = []
    for ex_row in exercise_rows:
        set_rows = conn.execute(
            "SELECT * FROM routine_sets WHERE routine_exercise_id = ? ORDER BY position ASC",
            (ex_row["id"],),
        ).fetchall()
        exercises.append(
            RoutineExercise(
                id=UUID(ex_row["id"]),
                notes=ex_row["notes"],
                exercise=Exercise(
                    id=UUID(ex_row["exercise_id"]),
                    name=ex_row["exercise_name"],
                    user_id=parse_uuid(ex_row["exercise_user_id"]),
                ),
                sets=[
                    RoutineSet(
                        id=UUID(s["id"]),
                        rep_range_lower=s["rep_range_lower"],
                        rep_range_upper=s["rep_range_upper"],
                        rir=s["rir"],
                        weight=s["weight"],
                    )
                    for s in set_rows
                ],
            )
        )

    return Routine(
        id=UUID(row["id"]),
        folder_id=UUID(row["folder_id"]),
        user_id=UUID(row["user_id"]),
        name=row["name"],
        notes=row["notes"],
        exercises=exercises,
    )


class SQLiteRoutineRepo(SQLiteRepoBase):
    def save(self, routine: Routine) -> Routine:
        """Upsert a routine and replace its exercises and sets."""
        conn = self._get_conn()
        try:
            position_row = conn.execute(
                "SELECT position FROM routines WHERE id = ?", (str(routine.id),)
            ).fetchone()
            if position_row:
                position = position_row["position"]
            else:
                position = conn.execute(
                    "SELECT COALESCE(MAX(position), -1) + 1 AS next FROM routines "
                    "WHERE folder_id = ?",
                    (str(routine.folder_id),),
                ).fetchone()["next"]

            conn.execute(
                """
                INSERT INTO routines (id, folder_id, user_id, name, notes, position)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    folder_id=excluded.folder_id,
                    name=excluded.name,
                    notes=excluded.notes
                """,
                (
                    str(routine.id),
                    str(routine.folder_id),
                    str(routine.user_id),
                    routine.name,
                    routine.notes,
                    position,
                ),
            )
            conn.execute("DELETE FROM routine_exercises WHERE routine_id = ?", (str(routine.id),))
            for i, exercise in enumerate(routine.exercises):
                conn.execute(
                    """
                    INSERT INTO routine_exercises (id, routine_id, exercise_id, notes, position)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        str(exercise.id),
                        str(routine.id),
                        str(exercise.exercise.id),
                        exercise.notes,
                        i,
                    ),
                )
                for j, s in enumerate(exercise.sets):
                    conn.execute(
                        """
                        INSERT INTO routine_sets (
                            id, routine_exercise_id, rep_range_lower, rep_range_upper,
                            rir, weight, position
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            str(s.id),
                            str(exercise.id),
                            s.rep_range_lower,
                            s.rep_range_upper,
                            s.rir,
                            s.weight,
                            j,
                        ),
                    )
            conn.commit()
            return routine
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Mesocycles
# -----------------------------------------------------------------------------


class SQLiteMesocycleRepo(SQLiteRepoBase):
    def get_by_id(self, mesocycle_id: UUID) -> Mesocycle | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM mesocycles WHERE id = ?", (str(mesocycle_id),)
            ).fetchone()
            return self._load(conn, row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def list_by_user(self, user_id: UUID) -> list[Mesocycle]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM mesocycles WHERE user_id = ? ORDER BY created_at DESC",
                (str(user_id),),
            ).fetchall()
            return [self._load(conn, r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def save(self, mesocycle: Mesocycle) -> Mesocycle:
        """Upsert the mesocycle row. Training days go through replace_training_days."""
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO mesocycles (
                    id, user_id, name, goal, duration_in_weeks, training_days_per_week,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    goal=excluded.goal,
                    duration_in_weeks=excluded.duration_in_weeks,
                    training_days_per_week=excluded.training_days_per_week,
                    updated_at=excluded.updated_at
                """,
                (
                    str(mesocycle.id),
                    str(mesocycle.user_id),
                    mesocycle.name,
                    mesocycle.goal,
                    mesocycle.duration_in_weeks,
                    mesocycle.training_days_per_week,
                    mesocycle.created_at.isoformat(),
                    mesocycle.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return mesocycle
        finally:
            if self._should_close():
                conn.close()

    def replace_training_days(self, mesocycle_id: UUID, days: list[TrainingDay]) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM training_days WHERE mesocycle_id = ?", (str(mesocycle_id),))
            for day in days:
                conn.execute(
                    "INSERT INTO training_days (id, mesocycle_id, day_number) VALUES (?, ?, ?)",
                    (str(day.id), str(mesocycle_id), day.day_number),
                )
                for i, exercise in enumerate(day.exercises):
                    conn.execute(
                        """
                        INSERT INTO mesocycle_exercises (
                            id, training_day_id, exercise_id, notes, position
                        ) VALUES (?, ?, ?, ?, ?)
                        """,
                        (
                            str(exercise.id),
                            str(day.id),
                            str(exercise.exercise_id),
                            exercise.notes,
                            i,
                        ),
                    )
                    for j, s in enumerate(exercise.sets):
                        conn.execute(
                            """
                            INSERT INTO mesocycle_sets (
                                id, mesocycle_exercise_id, rir, rep_range_lower,
                                rep_range_upper, weight, position
                            ) VALUES (?, ?, ?, ?, ?, ?, ?)
                            """,
                            (
                                str(s.id),
                                str(exercise.id),
                                s.rir,
                                s.rep_range_lower,
                                s.rep_range_upper,
                                s.weight,
                                j,
                            ),
                        )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            if self._should_close():
                conn.close()

    def _load(self, conn: sqlite3.Connection, row: dict[str, Any]) -> Mesocycle:
        day_rows = conn.execute(
            "SELECT * FROM training_days WHERE mesocycle_id = ? ORDER BY day_number ASC",
            (row["id"],),
        ).fetchall()

        days = []
        for day_row in day_rows:
            exercise_rows = conn.execute(
                "SELECT * FROM mesocycle_exercises WHERE training_day_id = ? ORDER BY position ASC",
                (day_row["id"],),
            ).fetchall()
            exercises = []
            for ex_row in exercise_rows:
                set_rows = conn.execute(
                    "SELECT * FROM mesocycle_sets WHERE mesocycle_exercise_id = ? "
                    "ORDER BY position ASC",
                    (ex_row["id"],),
                ).fetchall()
                exercises.append(
                    MesocycleExercise(
                        id=UUID(ex_row["id"]),
                        exercise_id=UUID(ex_row["exercise_id"]),
                        notes=ex_row["notes"],
                        sets=[
                            MesocycleSet(
                                id=UUID(s["id"]),
                                rir=s["rir"],
                                rep_range_lower=s["rep_range_lower"],
                                rep_range_upper=s["rep_range_upper"],
                                weight=s["weight"],
                            )
                            for s in set_rows
                        ],
                    )
                )
            days.append(
                TrainingDay(
                    id=UUID(day_row["id"]),
                    day_number=day_row["day_number"],
                    exercises=exercises,
                )
            )

        return Mesocycle(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            name=row["name"],
            goal=row["goal"],
            duration_in_weeks=row["duration_in_weeks"],
            training_days_per_week=row["training_days_per_week"],
            created_at=parse_dt(row["created_at"]) or datetime.min,
            updated_at=parse_dt(row["updated_at"]) or datetime.min,
            training_days=days,
        )
