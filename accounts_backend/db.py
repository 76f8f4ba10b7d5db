"""
Database abstraction for SQL stores and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    Column,
    Float,
    LargeBinary,
    String,
    Text,
    create_engine,
    select,
    text,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from accounts_backend.errors import (
    ConstraintViolation,
    DuplicateEmail,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)


class DbClient(Protocol):
    """Interface for database access."""

    def ping(self) -> None:
        ...

    def find_user_by_email(self, email: str) -> Optional["UserRecord"]:
        ...

    def insert_user(self, user: "UserRecord") -> str:
        ...

    def list_profiles(self) -> list["ProfileRecord"]:
        ...

    def insert_profile(self, profile: "ProfileRecord") -> str:
        ...


@dataclass
class UserRecord:
    first_name: str
    last_name: str
    email: str
    password: str
    id: Optional[str] = None
    created_at: float = field(default_factory=lambda: time.time())


@dataclass
class StoredImage:
    """An image as persisted: inline bytes or a storage path, never both."""

    content_type: str
    data: Optional[bytes] = None
    path: Optional[str] = None


@dataclass
class ProfileRecord:
    full_name: str
    mobile: str
    email: str
    location: str
    bio: str
    profile_image: Optional[StoredImage] = None
    cover_image: Optional[StoredImage] = None
    id: Optional[str] = None
    created_at: float = field(default_factory=lambda: time.time())


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.profiles: Dict[str, ProfileRecord] = {}
        self._lock = threading.Lock()

    def ping(self) -> None:
        return None

    def _find_user_locked(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            return self._find_user_locked(email)

    def insert_user(self, user: UserRecord) -> str:
        with self._lock:
            if self._find_user_locked(user.email):
                raise DuplicateEmail(user.email)
            user.id = uuid.uuid4().hex
            self.users[user.id] = user
        return user.id

    def list_profiles(self) -> list[ProfileRecord]:
        with self._lock:
            return list(self.profiles.values())

    def insert_profile(self, profile: ProfileRecord) -> str:
        profile.id = uuid.uuid4().hex
        with self._lock:
            self.profiles[profile.id] = profile
        return profile.id

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.users.clear()
        self.profiles.clear()


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageUnavailable("could not initialise schema") from exc
        logger.info("Connected to %s database", self.engine.dialect.name)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except IntegrityError as exc:
            raise ConstraintViolation(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise StorageUnavailable(str(exc)) from exc

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageUnavailable(str(exc)) from exc

    def _to_user_record(self, row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            first_name=row.first_name,
            last_name=row.last_name,
            email=row.email,
            password=row.password,
            created_at=row.created_at,
        )

    def _to_profile_record(self, row: "ProfileRow") -> ProfileRecord:
        return ProfileRecord(
            id=row.id,
            full_name=row.full_name,
            mobile=row.mobile,
            email=row.email,
            location=row.location,
            bio=row.bio,
            profile_image=_image_from_columns(
                row.profile_image,
                row.profile_image_type,
                row.profile_image_path,
            ),
            cover_image=_image_from_columns(
                row.cover_image, row.cover_image_type, row.cover_image_path
            ),
            created_at=row.created_at,
        )

    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._session() as session:
            stmt = select(UserRow).where(UserRow.email == email).limit(1)
            row = session.execute(stmt).scalar_one_or_none()
            if not row:
                return None
            return self._to_user_record(row)

    def insert_user(self, user: UserRecord) -> str:
        user_id = uuid.uuid4().hex
        try:
            with self._session() as session:
                session.add(
                    UserRow(
                        id=user_id,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        email=user.email,
                        password=user.password,
                        created_at=user.created_at,
                    )
                )
                session.commit()
        except ConstraintViolation as exc:
            # users.email is the only unique column besides the generated id.
            raise DuplicateEmail(user.email) from exc
        user.id = user_id
        return user_id

    def list_profiles(self) -> list[ProfileRecord]:
        with self._session() as session:
            rows = (
                session.execute(
                    select(ProfileRow).order_by(ProfileRow.created_at.asc())
                )
                .scalars()
                .all()
            )
            return [self._to_profile_record(row) for row in rows]

    def insert_profile(self, profile: ProfileRecord) -> str:
        profile_id = uuid.uuid4().hex
        profile_image = profile.profile_image or StoredImage(content_type="")
        cover_image = profile.cover_image or StoredImage(content_type="")
        with self._session() as session:
            session.add(
                ProfileRow(
                    id=profile_id,
                    full_name=profile.full_name,
                    mobile=profile.mobile,
                    email=profile.email,
                    location=profile.location,
                    bio=profile.bio,
                    profile_image=profile_image.data,
                    profile_image_type=profile_image.content_type or None,
                    profile_image_path=profile_image.path,
                    cover_image=cover_image.data,
                    cover_image_type=cover_image.content_type or None,
                    cover_image_path=cover_image.path,
                    created_at=profile.created_at,
                )
            )
            session.commit()
        profile.id = profile_id
        return profile_id


def _image_from_columns(
    data: Optional[bytes], content_type: Optional[str], path: Optional[str]
) -> Optional[StoredImage]:
    if not content_type or (data is None and not path):
        return None
    return StoredImage(content_type=content_type, data=data, path=path)


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)
    created_at = Column(Float, nullable=False)


class ProfileRow(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)
    mobile = Column(String, nullable=False)
    email = Column(String, nullable=False)
    location = Column(String, nullable=False)
    bio = Column(Text, nullable=False)
    profile_image = Column(LargeBinary, nullable=True)
    profile_image_type = Column(String, nullable=True)
    profile_image_path = Column(String, nullable=True)
    cover_image = Column(LargeBinary, nullable=True)
    cover_image_type = Column(String, nullable=True)
    cover_image_path = Column(String, nullable=True)
    created_at = Column(Float, nullable=False, index=True)
