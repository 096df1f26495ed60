"""Shared in-memory database fixtures for service-level tests."""

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from identity_dedup.db.session import enable_sqlite_foreign_keys
from identity_dedup.models.base import Base
from identity_dedup.models.profiles import OrganizerProfile, TalentProfile
from identity_dedup.models.user import User, UserRole

BASE_TIME = datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc)


class DatabaseTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        enable_sqlite_foreign_keys(cls.engine)
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self._reset_tables()
        self._clock = 0

    def tearDown(self) -> None:
        self.db.close()

    def _reset_tables(self) -> None:
        for table in reversed(Base.metadata.sorted_tables):
            self.db.execute(delete(table))
        self.db.commit()

    def add_user(
        self,
        email: str,
        name: str | None = None,
        role: UserRole = UserRole.TALENT,
        *,
        talent_phone: str | None = None,
        organizer_phone: str | None = None,
    ) -> str:
        """Create a user, created one minute after the previous one, and return its id."""

        user = User(
            email=email,
            name=name,
            role=role,
            created_at=BASE_TIME + timedelta(minutes=self._clock),
        )
        self._clock += 1
        self.db.add(user)
        self.db.flush()
        user_id = user.id
        if talent_phone is not None:
            self.db.add(TalentProfile(user_id=user_id, phone_number=talent_phone))
        if organizer_phone is not None:
            self.db.add(OrganizerProfile(user_id=user_id, phone_number=organizer_phone))
        self.db.commit()
        return user_id
