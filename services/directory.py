# services/directory.py

from typing import List, Optional

from core.store import DocumentSnapshot, DocumentStore
from models.enums import Role
from models.user import Principal
from services.projector import LiveProjection


USERS_COLLECTION = "users"


def decode_roster(snapshots: List[DocumentSnapshot]) -> List[Principal]:
    return [
        Principal.from_document(snap.id, snap.data)
        for snap in snapshots
        if snap.exists
    ]


class DirectoryProjector(LiveProjection[List[Principal]]):
    """
    Live roster of every principal (the `users` collection).

    Not a privilege boundary: any authenticated caller may list it.
    Surfaces that need more must check role/permissions themselves.
    """

    def __init__(self, store: DocumentStore):
        super().__init__(initial=[])
        self._start(
            lambda on_change, on_error: store.subscribe_query(USERS_COLLECTION, on_change, on_error),
            decode_roster,
        )

    @property
    def users(self) -> List[Principal]:
        return list(self.current or [])

    def by_uid(self, uid: str) -> Optional[Principal]:
        return next((u for u in self.users if u.uid == uid), None)

    def with_role(self, role: Role) -> List[Principal]:
        return [u for u in self.users if u.role == role]

    def author_names(self) -> List[str]:
        """Display names offered by the logbook author selector."""
        return sorted({u.display_name for u in self.users if u.display_name})
