"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test RSVP overbooking
  locust -f locustfile.py --tags throughput   # Test feed cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

Tokens are minted locally with the same secret the API verifies, so set
JWT_SECRET to match the server.
"""

import os
import random
import uuid
from datetime import date, datetime, timedelta, timezone

from jose import jwt
from locust import HttpUser, task, between, tag

JWT_SECRET = os.getenv("JWT_SECRET", "super-secret-jwt-token-change-in-production")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT = {}
CONCURRENCY_SPOTS = 10


def auth_headers(user_id: uuid.UUID) -> dict:
    token = jwt.encode(
        {
            "sub": str(user_id),
            "aud": JWT_AUDIENCE,
            "role": "authenticated",
            "exp": datetime.now(timezone.utc) + timedelta(hours=2),
        },
        JWT_SECRET,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


def event_payload(title: str, total_spots: int) -> dict:
    day = (date.today() + timedelta(days=30)).isoformat()
    return {
        "title": title,
        "description": "Load test event",
        "location": "Dubai Design District",
        "status": "published",
        "total_spots": total_spots,
        "max_spots_per_person": 1,
        "schedule": [{"event_date": day, "start_time": "18:00", "end_time": "21:00"}],
        "tags": ["load-test"],
    }


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 spots

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT SUM(number_of_spots) FROM whatson_rsvps
      WHERE event_id = X AND status = 'confirmed';
    Should be <= 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = auth_headers(uuid.uuid4())

        # The first user to start creates the contested event
        if not CONCURRENCY_EVENT:
            creator = auth_headers(uuid.uuid4())
            resp = self.client.post(
                "/api/v1/whatson",
                json=event_payload("Concurrency Test Event", CONCURRENCY_SPOTS),
                headers=creator,
            )
            if resp.status_code == 201:
                data = resp.json()["data"]
                CONCURRENCY_EVENT["id"] = data["id"]
                CONCURRENCY_EVENT["schedule_ids"] = [s["id"] for s in data["schedule"]]
                print(f"\nCreated event {data['id']} with {CONCURRENCY_SPOTS} spots\n")

    @tag("concurrency")
    @task
    def rsvp_limited_spots(self):
        """All users fight for the same 10 spots."""
        if not CONCURRENCY_EVENT:
            return

        with self.client.post(
            f"/api/v1/whatson/{CONCURRENCY_EVENT['id']}/rsvp",
            json={"number_of_spots": 1, "schedule_ids": CONCURRENCY_EVENT["schedule_ids"]},
            headers=self.headers,
            catch_response=True,
            name="/api/v1/whatson/{id}/rsvp",
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code in (400, 409):
                resp.success()  # Expected: full, already RSVP'd, or lost the race
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Feed cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. With REDIS_ENABLED=false on the server, run again

    Compare avg response time, requests/sec, P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def browse_feed(self):
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/v1/whatson?page={page}&limit=20", name="/api/v1/whatson [cached]")
        if resp.status_code == 200:
            for event in resp.json()["data"]["events"]:
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/whatson/{random.choice(EVENT_IDS)}", name="/api/v1/whatson/{id}")

    @tag("throughput", "read")
    @task(3)
    def browse_gigs(self):
        self.client.get("/api/v1/gigs?page=1&limit=20", name="/api/v1/gigs")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = auth_headers(uuid.uuid4())

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post(
            "/api/v1/whatson/999999/rsvp",
            json={"number_of_spots": 1, "schedule_ids": [1]},
            headers=self.headers,
            catch_response=True,
            name="/api/v1/whatson/{id}/rsvp [missing]",
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def zero_spots(self):
        event_id = CONCURRENCY_EVENT.get("id", 1)
        with self.client.post(
            f"/api/v1/whatson/{event_id}/rsvp",
            json={"number_of_spots": 0, "schedule_ids": [1]},
            headers=self.headers,
            catch_response=True,
            name="/api/v1/whatson/{id}/rsvp [zero]",
        ) as resp:
            self._expect(resp, (400, 404))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/whatson/1/rsvp",
            data="not json at all",
            headers={**self.headers, "Content-Type": "application/json"},
            catch_response=True,
            name="/api/v1/whatson/{id}/rsvp [garbage]",
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post(
            "/api/v1/whatson/1/rsvp",
            json={"number_of_spots": 1, "schedule_ids": [1]},
            catch_response=True,
            name="/api/v1/whatson/{id}/rsvp [anonymous]",
        ) as resp:
            self._expect(resp, (401,))

    @tag("edge")
    @task
    def apply_without_profile(self):
        with self.client.post(
            "/api/v1/gigs/1/apply",
            json={"coverLetter": "Hi"},
            headers=self.headers,
            catch_response=True,
            name="/api/v1/gigs/{id}/apply [no profile]",
        ) as resp:
            self._expect(resp, (403,))
