from datetime import datetime

from shortener.models.link import LinkRecord, VisitLog

LOG_CAP = 100
BOT_PATTERNS = ("bot", "spider", "crawl", "monitor", "render", "health")


class SubstringBotClassifier:
    """
    Определяет ботов по подстроке в User-Agent (без учёта регистра).

    Подойдёт любой объект с методом is_bot(user_agent) -> bool.
    """

    def __init__(self, patterns=BOT_PATTERNS):
        self.patterns = tuple(p.lower() for p in patterns)

    def is_bot(self, user_agent: str | None) -> bool:
        if not user_agent:
            return False
        agent = user_agent.lower()
        return any(p in agent for p in self.patterns)


def append_log(record: LinkRecord, ip: str, time: datetime) -> LinkRecord:
    record.logs.insert(0, VisitLog(ip=ip or "", time=time))
    del record.logs[LOG_CAP:]
    return record


def increment_counters(record: LinkRecord) -> LinkRecord:
    record.today_visits += 1
    record.total_visits += 1
    return record


def apply_visit(record: LinkRecord, ip: str, time: datetime) -> LinkRecord:
    return increment_counters(append_log(record, ip, time))
