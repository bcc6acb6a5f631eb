from __future__ import annotations
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import sqlalchemy as db
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from zastepy.domain.patrol import Member, MemberId, PatrolId, PatrolRecord
from zastepy.domain.errors import (
    MemberNotFoundError,
    PatrolAlreadyExistsError,
    PatrolNotFoundError,
    StorageError,
)
from zastepy.ports.change_notifier import ChangeNotifier

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Adapter SQL (SQLAlchemy Core) dla repozytorium zastępów.
# ==========================================================
# Tabele:
# - patrols     (id PK, patrol_id UNIQUE, name, color, created_at)
# - patrol_auth (patrol_id PK/FK, password)
# - members     (id PK, member_id UNIQUE, patrol_id FK, name, tasks_stopien, tasks_funkcja, created_at)
# - tasks       (id PK, patrol_id FK, task_key, current) + UNIQUE(patrol_id, task_key)
#
# - Zapisujemy tylko stan surowy; brak kolumn z flagami pochodnymi.
# - Kolejność listowania = kolejność wstawienia (autoinkrementowane `id`).
# - Błędy SQLAlchemy → StorageError, konflikt UNIQUE(patrol_id) → PatrolAlreadyExistsError.


def _to_url(url: str | Path) -> str:
    if isinstance(url, Path) or "://" not in str(url):
        path = Path(url)
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path}"
    return str(url)


class SqlPatrolRepository:
    def __init__(self, url: str | Path, notifier: ChangeNotifier | None = None) -> None:
        """
        url: np. 'sqlite:///data/zastepy.db' lub Path do pliku (zostanie zrobiony URL)
        """
        self.engine = db.create_engine(_to_url(url), future=True)
        self.notifier = notifier
        self.meta = db.MetaData()

        self.patrols = db.Table(
            "patrols",
            self.meta,
            db.Column("id", db.Integer, primary_key=True, autoincrement=True),
            db.Column("patrol_id", db.String, nullable=False, unique=True),
            db.Column("name", db.String, nullable=False),
            db.Column("color", db.String, nullable=False),
            db.Column("created_at", db.String, nullable=False),  # ISO8601 '...Z'
        )
        self.patrol_auth = db.Table(
            "patrol_auth",
            self.meta,
            db.Column("patrol_id", db.String, db.ForeignKey("patrols.patrol_id"), primary_key=True),
            db.Column("password", db.String, nullable=False),
        )
        self.members = db.Table(
            "members",
            self.meta,
            db.Column("id", db.Integer, primary_key=True, autoincrement=True),
            db.Column("member_id", db.String, nullable=False, unique=True),
            db.Column("patrol_id", db.String, db.ForeignKey("patrols.patrol_id"), nullable=False),
            db.Column("name", db.String, nullable=False),
            db.Column("tasks_stopien", db.Integer, nullable=False, default=0),
            db.Column("tasks_funkcja", db.Integer, nullable=False, default=0),
            db.Column("created_at", db.String, nullable=False),
        )
        self.tasks = db.Table(
            "tasks",
            self.meta,
            db.Column("id", db.Integer, primary_key=True, autoincrement=True),
            db.Column("patrol_id", db.String, db.ForeignKey("patrols.patrol_id"), nullable=False),
            db.Column("task_key", db.String, nullable=False),
            db.Column("current", db.Integer, nullable=False, default=0),
            db.UniqueConstraint("patrol_id", "task_key", name="uq_tasks_patrol_task"),
        )

        try:
            self.meta.create_all(self.engine)
            logger.debug("Schemat bazy gotowy: %s", self.engine.url)
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def _notify(self, table: str) -> None:
        if self.notifier is not None:
            self.notifier.publish(table)

    def _patrol_exists(self, conn, patrol_id: PatrolId) -> bool:
        stmt = (
            db.select(db.literal(1))
            .select_from(self.patrols)
            .where(self.patrols.c.patrol_id == str(patrol_id))
            .limit(1)
        )
        return conn.execute(stmt).first() is not None

    def _from_row(self, row) -> PatrolRecord:
        return PatrolRecord(
            patrol_id=PatrolId(row["patrol_id"]),
            name=row["name"],
            color=row["color"],
        )

    def add_patrol(self, record: PatrolRecord, password: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(db.insert(self.patrols).values(
                    patrol_id=str(record.patrol_id),
                    name=record.name,
                    color=record.color,
                    created_at=self._now(),
                ))
                conn.execute(db.insert(self.patrol_auth).values(
                    patrol_id=str(record.patrol_id),
                    password=password,
                ))
        except IntegrityError:
            # konflikt UNIQUE(patrol_id)
            raise PatrolAlreadyExistsError(record.patrol_id)
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def list_patrols(self) -> list[PatrolRecord]:
        stmt = db.select(self.patrols).order_by(self.patrols.c.id.asc())
        try:
            with self.engine.connect() as conn:
                return [self._from_row(r) for r in conn.execute(stmt).mappings().all()]
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def get_patrol(self, patrol_id: PatrolId) -> Optional[PatrolRecord]:
        stmt = db.select(self.patrols).where(self.patrols.c.patrol_id == str(patrol_id))
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
                return self._from_row(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def task_counters(self, patrol_id: PatrolId) -> dict[str, int]:
        stmt = db.select(self.tasks.c.task_key, self.tasks.c.current).where(
            self.tasks.c.patrol_id == str(patrol_id)
        )
        try:
            with self.engine.connect() as conn:
                return {r["task_key"]: int(r["current"]) for r in conn.execute(stmt).mappings()}
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def list_members(self, patrol_id: PatrolId) -> list[Member]:
        stmt = (
            db.select(self.members)
            .where(self.members.c.patrol_id == str(patrol_id))
            .order_by(self.members.c.id.asc())
        )
        try:
            with self.engine.connect() as conn:
                return [
                    Member(
                        member_id=MemberId(r["member_id"]),
                        name=r["name"],
                        tasks_stopien=int(r["tasks_stopien"] or 0),
                        tasks_funkcja=int(r["tasks_funkcja"] or 0),
                    )
                    for r in conn.execute(stmt).mappings()
                ]
        except SQLAlchemyError as e:
            raise StorageError(str(e))

    def upsert_task(self, patrol_id: PatrolId, task_key: str, current: int) -> None:
        where = (self.tasks.c.patrol_id == str(patrol_id)) & (self.tasks.c.task_key == task_key)
        try:
            with self.engine.begin() as conn:
                if not self._patrol_exists(conn, patrol_id):
                    raise PatrolNotFoundError(patrol_id)
                result = conn.execute(db.update(self.tasks).where(where).values(current=current))
                if result.rowcount == 0:
                    conn.execute(db.insert(self.tasks).values(
                        patrol_id=str(patrol_id), task_key=task_key, current=current,
                    ))
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        self._notify("tasks")

    def add_member(self, patrol_id: PatrolId, member: Member) -> None:
        try:
            with self.engine.begin() as conn:
                if not self._patrol_exists(conn, patrol_id):
                    raise PatrolNotFoundError(patrol_id)
                conn.execute(db.insert(self.members).values(
                    member_id=str(member.member_id),
                    patrol_id=str(patrol_id),
                    name=member.name,
                    tasks_stopien=member.tasks_stopien,
                    tasks_funkcja=member.tasks_funkcja,
                    created_at=self._now(),
                ))
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        self._notify("members")

    def _member_where(self, patrol_id: PatrolId, member_id: MemberId):
        return (self.members.c.member_id == str(member_id)) & (self.members.c.patrol_id == str(patrol_id))

    def remove_member(self, patrol_id: PatrolId, member_id: MemberId) -> None:
        stmt = db.delete(self.members).where(self._member_where(patrol_id, member_id))
        try:
            with self.engine.begin() as conn:
                if conn.execute(stmt).rowcount == 0:
                    raise MemberNotFoundError(member_id)
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        self._notify("members")

    def update_member_tallies(
        self,
        patrol_id: PatrolId,
        member_id: MemberId,
        tasks_stopien: int,
        tasks_funkcja: int,
    ) -> None:
        stmt = (
            db.update(self.members)
            .where(self._member_where(patrol_id, member_id))
            .values(tasks_stopien=tasks_stopien, tasks_funkcja=tasks_funkcja)
        )
        try:
            with self.engine.begin() as conn:
                if conn.execute(stmt).rowcount == 0:
                    raise MemberNotFoundError(member_id)
        except SQLAlchemyError as e:
            raise StorageError(str(e))
        self._notify("members")

    def get_password(self, patrol_id: PatrolId) -> Optional[str]:
        stmt = db.select(self.patrol_auth.c.password).where(
            self.patrol_auth.c.patrol_id == str(patrol_id)
        )
        try:
            with self.engine.connect() as conn:
                return conn.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(str(e))
