import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from .errors import StorageError
from .models import Database, Link, User

logger = logging.getLogger(__name__)


class Repository(ABC):
    """Persistence for users and their links."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def add_user(self, email: str, password_hash: str) -> Optional[User]:
        """Create a user; returns None when the email is already taken."""

    @abstractmethod
    def list_links(self, user_id: int) -> List[Link]:
        """The user's links sorted by order."""

    @abstractmethod
    def add_link(self, link: Link) -> Link:
        """Append a link at the end of its owner's list.

        The stored copy gets ``order`` equal to the owner's current link
        count and an id that does not collide with an existing link.
        """

    @abstractmethod
    def delete_link(self, user_id: int, link_id: int) -> bool: ...

    @abstractmethod
    def set_link_order(self, user_id: int, ordered_ids: Sequence[int]) -> bool:
        """Assign order by position; False unless ids are a permutation of the user's links."""


def is_permutation(ordered_ids: Sequence[int], links: Sequence[Link]) -> bool:
    owned = {link.id for link in links}
    return len(ordered_ids) == len(owned) and set(ordered_ids) == owned


class JsonFileRepository(Repository):
    """Whole-document JSON store.

    Every call reads the file, mutates the in-memory copy and rewrites the
    file. Calls are serialised with a lock so writers in this process do not
    overwrite each other.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._lock = threading.RLock()

    def load(self) -> Database:
        with self._lock:
            if not self.path.exists():
                logger.warning("%s not found, creating an empty one.", self.path)
                db = Database()
                self.save(db)
                return db
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                return Database.model_validate(data)
            except (OSError, ValueError, ValidationError) as exc:
                raise StorageError(f"Error reading {self.path}: {exc}") from exc

    def save(self, db: Database) -> None:
        payload = json.dumps(db.model_dump(mode="json", by_alias=True), indent=2)
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        f.write(payload)
                    os.replace(tmp, self.path)
                except BaseException:
                    if os.path.exists(tmp):
                        os.unlink(tmp)
                    raise
            except OSError as exc:
                raise StorageError(f"Error writing {self.path}: {exc}") from exc

    def get_user_by_email(self, email: str) -> Optional[User]:
        db = self.load()
        return next((u for u in db.users if u.email == email), None)

    def add_user(self, email: str, password_hash: str) -> Optional[User]:
        with self._lock:
            db = self.load()
            if any(u.email == email for u in db.users):
                return None
            user = User(id=len(db.users) + 1, email=email, password_hash=password_hash)
            db.users.append(user)
            self.save(db)
            return user

    def list_links(self, user_id: int) -> List[Link]:
        db = self.load()
        return sorted((link for link in db.links if link.user_id == user_id), key=lambda link: link.order)

    def add_link(self, link: Link) -> Link:
        with self._lock:
            db = self.load()
            taken = {existing.id for existing in db.links}
            link_id = link.id
            while link_id in taken:
                link_id += 1
            owned = sum(1 for existing in db.links if existing.user_id == link.user_id)
            stored = link.model_copy(update={"id": link_id, "order": owned})
            db.links.append(stored)
            self.save(db)
            return stored

    def delete_link(self, user_id: int, link_id: int) -> bool:
        with self._lock:
            db = self.load()
            before = len(db.links)
            db.links = [link for link in db.links if not (link.id == link_id and link.user_id == user_id)]
            if len(db.links) == before:
                return False
            self.save(db)
            return True

    def set_link_order(self, user_id: int, ordered_ids: Sequence[int]) -> bool:
        with self._lock:
            db = self.load()
            owned = [link for link in db.links if link.user_id == user_id]
            if not is_permutation(ordered_ids, owned):
                return False
            position = {link_id: index for index, link_id in enumerate(ordered_ids)}
            for link in owned:
                link.order = position[link.id]
            self.save(db)
            return True
