"""
Run a Celery worker for async session generation.
The worker only consumes the session queue, so it can share a Redis
instance with other services.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from planner.core.celery_app import celery_app
from planner.core.config import SESSION_QUEUE, LOG_LEVEL

if __name__ == "__main__":
    print("=" * 60)
    print("Pickleball Session Planner - Celery Worker")
    print("=" * 60)
    print(f"Consuming queue: {SESSION_QUEUE}")
    print("=" * 60)

    celery_app.worker_main([
        "worker",
        f"--loglevel={LOG_LEVEL.lower()}",
        f"--queues={SESSION_QUEUE}",
        "--hostname=session-planner@%h",
        # Generation is CPU-bound; one process per core is enough
        f"--concurrency={os.cpu_count() or 2}",
        "--pool=solo" if os.name == "nt" else "--pool=prefork"
    ])
