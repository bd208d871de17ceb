import argparse
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional

from .base_check import BaseCheck, CheckResult, CheckStatus
from ..constants import DEFAULT_LOGS_POLL_INTERVAL

logger = logging.getLogger(__name__)


def format_event(event: Dict) -> str:
    timestamp = datetime.fromtimestamp(event["timestamp"] / 1000, tz=timezone.utc)
    return (
        f"{timestamp.isoformat()} {event.get('logStreamName', '')} "
        f"{event.get('message', '').rstrip()}"
    )


class TailLogsCheck(BaseCheck):
    name = "tail-logs"
    help = "Print recent CloudWatch Logs events, optionally following new ones."

    def __init__(
        self,
        session,
        settings=None,
        emit: Callable[[str], None] = print,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(session, settings)
        self.client = session.client("logs")
        self.emit = emit
        self.sleep = sleep

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("log_group", help="Log group name.")
        parser.add_argument("--since", type=int, help="Look back this many minutes.")
        parser.add_argument("--filter-pattern", help="CloudWatch Logs filter pattern.")
        parser.add_argument(
            "--follow", action="store_true", help="Keep polling for new events."
        )
        parser.add_argument(
            "--interval",
            type=int,
            default=DEFAULT_LOGS_POLL_INTERVAL,
            help="Seconds between polls.",
        )

    def fetch_events(
        self, log_group: str, start_time: int, filter_pattern: Optional[str]
    ) -> Iterator[Dict]:
        params = {"logGroupName": log_group, "startTime": start_time}
        if filter_pattern:
            params["filterPattern"] = filter_pattern
        paginator = self.client.get_paginator("filter_log_events")
        for page in paginator.paginate(**params):
            yield from page.get("events", [])

    def run(self, args: argparse.Namespace) -> CheckResult:
        since = args.since if args.since is not None else self.settings.logs_since_minutes
        start_time = int((time.time() - since * 60) * 1000)
        # event id -> timestamp, only for events at or after start_time
        seen: Dict[str, int] = {}
        count = 0

        try:
            while True:
                new_events: List[Dict] = [
                    event
                    for event in self.fetch_events(
                        args.log_group, start_time, args.filter_pattern
                    )
                    if event.get("eventId") not in seen
                ]
                for event in sorted(new_events, key=lambda e: e["timestamp"]):
                    seen[event.get("eventId")] = event["timestamp"]
                    self.emit(format_event(event))
                    start_time = max(start_time, event["timestamp"])
                    count += 1

                # older events can no longer be returned by the next poll
                seen = {
                    event_id: timestamp
                    for event_id, timestamp in seen.items()
                    if timestamp >= start_time
                }

                if not args.follow:
                    break
                self.sleep(args.interval)
        except KeyboardInterrupt:
            logger.info("Stopped following logs")

        return CheckResult(
            CheckStatus.OK, f"{count} event(s) from {args.log_group}"
        )
