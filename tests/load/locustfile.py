"""
Load Testing Scripts

Locust load tests for the UNMUTE crisis pipeline API.
Exercises message ingestion (the hot path on every student message),
stateless classification and staff dashboard reads.

USAGE:
    locust -f tests/load/locustfile.py --host=http://localhost:8000
"""

import random
import uuid

from locust import HttpUser, between, events, task
from locust.contrib.fasthttp import FastHttpUser

API = "/api/v1"

MESSAGES = [
    "See you at practice tomorrow",
    "ugh I failed my exam",
    "I'm so stressed about the deadline",
    "I feel so alone lately",
    "I'm not suicidal, just tired",
    "I feel hopeless",
    "I want to die",
]

INSTITUTIONS = [str(uuid.uuid4()) for _ in range(5)]


class StudentMessageUser(FastHttpUser):
    """
    Simulated student traffic.

    Ingestion must stay fast whatever the downstream risk update does.
    """

    wait_time = between(0.5, 3)

    def on_start(self):
        self.user_id = str(uuid.uuid4())
        self.institution_id = random.choice(INSTITUTIONS)

    @task(20)
    def send_message(self):
        """Forward a student message for classification."""
        payload = {
            "user_id": self.user_id,
            "institution_id": self.institution_id,
            "text": random.choice(MESSAGES),
            "source_type": "message",
            "source_id": str(uuid.uuid4()),
        }
        with self.client.post(f"{API}/messages", json=payload, catch_response=True) as response:
            if response.status_code == 202:
                response.success()
            else:
                response.failure(f"Ingestion failed: {response.status_code}")

    @task(5)
    def classify(self):
        """Stateless classification."""
        self.client.post(f"{API}/signals/classify", json={"text": random.choice(MESSAGES)})

    @task(2)
    def health_check(self):
        """Liveness probe."""
        with self.client.get(f"{API}/health/live", catch_response=True) as response:
            if response.status_code == 200:
                response.success()
            else:
                response.failure(f"Health check failed: {response.status_code}")


class StaffDashboardUser(HttpUser):
    """
    Simulated staff dashboard polling.

    The alert stream itself is a WebSocket; locust covers the
    REST reads a dashboard makes alongside it.
    """

    wait_time = between(2, 5)

    def on_start(self):
        self.institution_id = random.choice(INSTITUTIONS)

    @task(3)
    def pending_assignments(self):
        self.client.get(
            f"{API}/assignments",
            params={"status": "pending", "institution_id": self.institution_id},
            name=f"{API}/assignments",
        )

    @task(2)
    def institution_summary(self):
        self.client.get(
            f"{API}/reports/institutions/{self.institution_id}/summary",
            name=f"{API}/reports/institutions/[id]/summary",
        )

    @task(1)
    def review_queue(self):
        self.client.get(
            f"{API}/signal-records",
            params={"institution_id": self.institution_id, "limit": 50},
            name=f"{API}/signal-records",
        )

    @task(1)
    def metrics_endpoint(self):
        """Prometheus metrics scrape."""
        self.client.get("/metrics")


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Log test start."""
    print("Load test starting...")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Log test completion."""
    print("Load test complete.")
    print(f"Total requests: {environment.stats.total.num_requests}")
    print(f"Failures: {environment.stats.total.num_failures}")
    print(f"Avg response time: {environment.stats.total.avg_response_time:.2f}ms")
