"""
Gunicorn Configuration

Uvicorn workers under Gunicorn for the dashboard API.
"""

import multiprocessing
import os

# Server socket
bind = os.getenv("BIND", f"0.0.0.0:{os.getenv('BACKEND_PORT', '3001')}")
backlog = 2048

# Worker processes; each worker owns its own connection pool and catalog snapshot
workers = int(os.getenv("API_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 10000
max_requests_jitter = 1000
timeout = 120
keepalive = 5
graceful_timeout = 30

proc_name = "restaurant-sales-dashboard-api"

# Logging
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = "-"
