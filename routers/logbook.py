# routers/logbook.py

from typing import List

from fastapi import APIRouter, Depends

from core.store import DocumentStore
from dependencies.auth import get_store, requires_capability
from models.enums import QuickFilter
from models.logbook import LogEntry, LogEntryCreate, LogFilter
from models.user import Principal
from services.logbook import (
    LogbookRepository,
    archive,
    filter_log,
    mark_read,
    new_entry,
    unarchive,
)


router = APIRouter(
    prefix="/logbook",
    tags=["Logbook"],
)

reception_access = requires_capability("can_view_reception")


def get_repository(store: DocumentStore = Depends(get_store)) -> LogbookRepository:
    return LogbookRepository(store)


# -----------------------------------------------------
# LIST (filtered view)
# -----------------------------------------------------
@router.get("", response_model=List[LogEntry], summary="Filtered logbook entries")
def list_entries(
    show_archived: bool = False,
    search: str = "",
    quick_filter: QuickFilter = QuickFilter.ALL,
    principal: Principal = Depends(reception_access),
    repo: LogbookRepository = Depends(get_repository),
):
    return filter_log(
        repo.list_entries(),
        LogFilter(
            show_archived=show_archived,
            search_text=search,
            quick_filter=quick_filter,
            current_user_display_name=principal.display_name,
        ),
    )


# -----------------------------------------------------
# POST ENTRY
# -----------------------------------------------------
@router.post("", response_model=LogEntry, status_code=201, summary="Post a logbook entry")
def post_entry(
    payload: LogEntryCreate,
    principal: Principal = Depends(reception_access),
    repo: LogbookRepository = Depends(get_repository),
):
    entry = new_entry(
        payload.message,
        author=payload.author,
        session_display_name=principal.display_name,
        priority=payload.priority,
        target=payload.target,
    )
    return repo.save(entry)


# -----------------------------------------------------
# READ RECEIPT / ARCHIVE
# -----------------------------------------------------
@router.post("/{entry_id}/read", response_model=LogEntry, summary="Mark entry as read")
def read_entry(
    entry_id: str,
    principal: Principal = Depends(reception_access),
    repo: LogbookRepository = Depends(get_repository),
):
    return repo.transition(entry_id, lambda e: mark_read(e, principal.uid))


@router.post(
    "/{entry_id}/archive",
    response_model=LogEntry,
    summary="Archive entry",
    dependencies=[Depends(reception_access)],
)
def archive_entry(entry_id: str, repo: LogbookRepository = Depends(get_repository)):
    return repo.transition(entry_id, archive)


@router.post(
    "/{entry_id}/unarchive",
    response_model=LogEntry,
    summary="Restore archived entry",
    dependencies=[Depends(reception_access)],
)
def unarchive_entry(entry_id: str, repo: LogbookRepository = Depends(get_repository)):
    return repo.transition(entry_id, unarchive)
