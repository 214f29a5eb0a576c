#!/usr/bin/env python3
"""
Scheduling Smoke Test

Exercises a running server end to end: weekend confirmation, conflict
rejection, lunch-break rejection and a recurring series, then removes
everything it created.

Usage:
    python scripts/smoke_scheduling.py [--api-url URL] [--date YYYY-MM-DD]

Options:
    --api-url       Service URL (default: http://localhost:9020/api)
    --date          A Friday to work on (default: 2025-08-08)
"""

import argparse
import logging
import sys
from datetime import date, timedelta
from typing import Dict, List

import requests
from requests.exceptions import RequestException

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


class SchedulingSmokeTest:
    """Runs the scheduling scenarios against a live API."""

    def __init__(self, api_url: str, friday: date):
        self.api_url = api_url.rstrip('/')
        self.friday = friday
        self.created_ids: List[int] = []
        self.series_ids: List[int] = []
        self.failures = 0

    def check_api_health(self) -> bool:
        try:
            response = requests.get(f"{self.api_url}/health", timeout=5)
            return response.status_code == 200
        except RequestException as e:
            logger.error(f"API health check failed: {e}")
            return False

    def post(self, path: str, payload: Dict) -> requests.Response:
        return requests.post(f"{self.api_url}{path}", json=payload, timeout=30)

    def expect(self, label: str, condition: bool, detail: str = "") -> None:
        if condition:
            logger.info(f"PASS {label}")
        else:
            self.failures += 1
            logger.error(f"FAIL {label} {detail}")

    def appointment(self, day: date, start: str, duration: int, **flags) -> Dict:
        return {
            "title": f"Smoke {day.isoformat()} {start}",
            "date": day.isoformat(),
            "start_time": start,
            "duration_minutes": duration,
            **flags,
        }

    def run_weekend_confirmation(self) -> None:
        saturday = self.friday + timedelta(days=1)
        response = self.post("/appointments", self.appointment(saturday, "10:00", 60))
        body = response.json()
        self.expect("weekend requires confirmation", response.status_code == 428, str(body))
        self.expect("weekend dayType", body.get("day_type") == "SÁBADO", str(body))

        response = self.post(
            "/appointments",
            self.appointment(saturday, "10:00", 60, allow_weekend_override=True),
        )
        body = response.json()
        self.expect("weekend override accepted", response.status_code == 201, str(body))
        if response.status_code == 201:
            self.created_ids.append(body["appointment"]["id"])
            self.expect("weekend override is overtime", body["is_overtime"] is True, str(body))

    def run_conflict(self) -> None:
        monday = self.friday + timedelta(days=3)
        first = self.post("/appointments", self.appointment(monday, "09:00", 60))
        if first.status_code == 201:
            self.created_ids.append(first.json()["appointment"]["id"])
        second = self.post("/appointments", self.appointment(monday, "09:30", 60))
        body = second.json()
        self.expect("overlap rejected", second.status_code == 409, str(body))
        self.expect("conflict listed", bool(body.get("conflicts")), str(body))

    def run_lunch_break(self) -> None:
        tuesday = self.friday + timedelta(days=4)
        response = self.post("/appointments", self.appointment(tuesday, "12:30", 30))
        body = response.json()
        self.expect("lunch break rejected", response.status_code == 409, str(body))
        self.expect("lunch break suggestion", body.get("suggested_time") == "13:00", str(body))

    def run_recurring(self) -> None:
        payload = self.appointment(self.friday, "16:00", 30)
        payload.update(recurrence_pattern="daily", recurrence_end_count=7)
        response = self.post("/appointments/recurring", payload)
        body = response.json()
        self.expect("recurring created", response.status_code == 201, str(body))
        if response.status_code != 201:
            return
        self.series_ids.append(body["recurring_task_id"])
        self.expect("seven occurrences tracked", len(body["occurrences"]) == 7, str(body["occurrences"]))
        weekend = [i for i in body["instances"] if date.fromisoformat(i["date"]).weekday() >= 5]
        self.expect("no weekend instances", not weekend, str(weekend))

    def cleanup(self) -> None:
        for series_id in self.series_ids:
            requests.delete(f"{self.api_url}/appointments/recurring/{series_id}", timeout=30)
        for appointment_id in self.created_ids:
            requests.delete(f"{self.api_url}/appointments/{appointment_id}", timeout=30)
        logger.info(f"Removed {len(self.series_ids)} series and {len(self.created_ids)} appointments")

    def run(self) -> int:
        if not self.check_api_health():
            return 2
        try:
            self.run_weekend_confirmation()
            self.run_conflict()
            self.run_lunch_break()
            self.run_recurring()
        finally:
            self.cleanup()
        logger.info(f"Smoke test finished with {self.failures} failure(s)")
        return 1 if self.failures else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Scheduling smoke test")
    parser.add_argument('--api-url', default='http://localhost:9020/api', help='Service URL')
    parser.add_argument('--date', default='2025-08-08', help='A Friday (YYYY-MM-DD)')
    args = parser.parse_args()

    friday = date.fromisoformat(args.date)
    if friday.weekday() != 4:
        parser.error(f"{args.date} is not a Friday")
    return SchedulingSmokeTest(args.api_url, friday).run()


if __name__ == '__main__':
    sys.exit(main())
