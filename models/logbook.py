# models/logbook.py

from typing import List, Optional
from datetime import datetime

from pydantic import Field

from models.base import DocumentModel
from models.enums import LogPriority, LogTarget, LogStatus, QuickFilter


class LogEntry(DocumentModel):
    """
    One main courante entry. Never hard-deleted: archiving flips `status`.
    `read_by` holds each reader uid at most once.
    """
    id: str
    author: str
    message: str
    priority: LogPriority = LogPriority.info
    target: LogTarget = LogTarget.all
    status: LogStatus = LogStatus.active
    timestamp: datetime
    read_by: List[str] = Field(default_factory=list)


class LogEntryCreate(DocumentModel):
    message: str
    author: Optional[str] = None
    priority: LogPriority = LogPriority.info
    target: LogTarget = LogTarget.all


class LogFilter(DocumentModel):
    show_archived: bool = False
    search_text: str = ""
    quick_filter: QuickFilter = QuickFilter.ALL
    current_user_display_name: str = ""
