#!/usr/bin/env python3
"""
Gunicorn configuration for the Meteo Stations API.

Values can be overridden with environment variables (PORT, WEB_CONCURRENCY,
GUNICORN_ACCESS_LOG, GUNICORN_ERROR_LOG, LOG_LEVEL).
"""

import multiprocessing
import os

# Server socket
bind = f"0.0.0.0:{os.environ.get('PORT', '3000')}"
backlog = 2048

# Worker processes; requests are independent so plain sync workers are enough
workers = int(os.environ.get('WEB_CONCURRENCY', multiprocessing.cpu_count() * 2 + 1))
worker_class = "sync"
timeout = 30
keepalive = 2

# Restart workers after this many requests
max_requests = 1000
max_requests_jitter = 100

# Logging ("-" means stdout/stderr)
accesslog = os.environ.get('GUNICORN_ACCESS_LOG', '-')
errorlog = os.environ.get('GUNICORN_ERROR_LOG', '-')
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s"'

# Process naming
proc_name = "meteo_stations_api"

# Daemon mode
daemon = False

# Each worker opens its own MongoDB client; do not share one across fork
preload_app = False

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def on_starting(server):
    server.log.info("Starting Meteo Stations API")


def on_reload(server):
    server.log.info("Reloading Meteo Stations API")


def when_ready(server):
    server.log.info("Meteo Stations API is ready. Listening on: %s", server.address)


def on_exit(server):
    server.log.info("Shutting down Meteo Stations API")
