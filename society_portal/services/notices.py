"""User-facing notices raised by the flows and drained by the HTTP layer"""

import logging
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

SUCCESS = "success"
INFO = "info"
WARNING = "warning"
ERROR = "error"


@dataclass
class Notice:
    level: str
    title: str
    message: str


class NoticeBoard:
    """Collects notices until the presentation layer picks them up"""

    def __init__(self):
        self._pending: List[Notice] = []

    def post(self, level: str, title: str, message: str) -> Notice:
        notice = Notice(level=level, title=title, message=message)
        self._pending.append(notice)
        log = logger.warning if level in (WARNING, ERROR) else logger.info
        log("Notice posted", extra={"notice_level": level, "notice_title": title})
        return notice

    def success(self, title: str, message: str) -> Notice:
        return self.post(SUCCESS, title, message)

    def info(self, title: str, message: str) -> Notice:
        return self.post(INFO, title, message)

    def warning(self, title: str, message: str) -> Notice:
        return self.post(WARNING, title, message)

    def error(self, title: str, message: str) -> Notice:
        return self.post(ERROR, title, message)

    def drain(self) -> List[Notice]:
        pending, self._pending = self._pending, []
        return pending
