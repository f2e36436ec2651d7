"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags race        # Same email from many users
  locust -f locustfile.py --tags throughput  # Stats endpoint under load
  locust -f locustfile.py --tags edge        # Bad input
  locust -f locustfile.py                    # All tests

Run the API with a generous RATE_LIMIT_MAX_SIGNUP_REQUESTS, otherwise the
request throttle answers most signups before they reach admission.
"""

import random
import string
from locust import HttpUser, task, between, tag

RACE_EMAIL = f"race_{random.randint(10000, 99999)}@loadtest.dev"


def random_email():
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=10))
    return f"load_{suffix}@loadtest.dev"


def random_ip():
    return ".".join(str(random.randint(1, 254)) for _ in range(4))


class DuplicateRaceUser(HttpUser):
    """
    TEST 1: Duplicate-email race - many users submit the same address

    Run: locust -f locustfile.py --tags race -u 100 -r 100 --run-time 20s

    After test, verify exactly one row exists:
      SELECT COUNT(*) FROM waitlist_entries WHERE email = '<RACE_EMAIL>';
    Every other attempt must be a 409, never a 500.
    """
    wait_time = between(0, 0.05)

    @tag("race")
    @task
    def join_same_email(self):
        with self.client.post("/api/v1/waitlist/join",
            json={"name": "Race Runner", "email": RACE_EMAIL},
            headers={"X-Forwarded-For": random_ip()},
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class CapacityUser(HttpUser):
    """
    TEST 2: Capacity boundary - distinct emails near MAX_WAITLIST_ENTRIES

    Run with a small cap (e.g. MAX_WAITLIST_ENTRIES=50):
      locust -f locustfile.py --tags capacity -u 100 -r 50 --run-time 30s

    Overshoot beyond the cap is bounded by concurrently racing requests:
      SELECT COUNT(*) FROM waitlist_entries;
    """
    wait_time = between(0, 0.1)

    @tag("capacity")
    @task
    def join_distinct(self):
        with self.client.post("/api/v1/waitlist/join",
            json={"name": "Load Tester", "email": random_email()},
            headers={"X-Forwarded-For": random_ip()},
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 429):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 3: Read throughput - every stats call issues two COUNT queries

    Run: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def waitlist_stats(self):
        self.client.get("/api/v1/waitlist/stats")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    Every request must be answered with a 4xx, never a 5xx.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, path, expected, **kwargs):
        with self.client.post(path, catch_response=True, **kwargs) as resp:
            if resp.status_code in expected:
                resp.success()
            else:
                resp.failure(f"Expected {expected}, got {resp.status_code}")

    @tag("edge")
    @task
    def short_name(self):
        self._expect("/api/v1/waitlist/join", (400, 429), json={"name": "J", "email": random_email()})

    @tag("edge")
    @task
    def bad_email(self):
        self._expect("/api/v1/waitlist/join", (400, 429), json={"name": "Load Tester", "email": "nope"})

    @tag("edge")
    @task
    def script_in_name(self):
        self._expect("/api/v1/waitlist/join", (400, 429),
                     json={"name": "<script>alert(1)</script>", "email": random_email()})

    @tag("edge")
    @task
    def short_message(self):
        self._expect("/api/v1/contact", (400, 429), json={
            "name": "Load Tester", "email": random_email(), "subject": "Hello", "message": "hi",
        })

    @tag("edge")
    @task
    def malformed_json(self):
        self._expect("/api/v1/waitlist/join", (400, 422, 429), data="not json at all")
