#!/usr/bin/env python3
"""
Starts the Celery worker that drains inline product images to object storage.
"""

from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    from core.celery import celery_app
    from core.config import settings

    celery_app.start([
        "worker",
        f"--loglevel={settings.LOG_LEVEL.lower()}",
        "--concurrency=2",
        "--queues=images,celery",
        "--without-gossip",
        "--without-mingle",
        "--without-heartbeat",
    ])
