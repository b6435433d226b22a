"""
Gunicorn configuration for Gestion Proyectos.

Usage:
    gunicorn gestion_proyectos.main:app -c gunicorn.conf.py
"""

import os

# Bind to all interfaces on port 8000
bind = os.getenv("BIND", "0.0.0.0:8000")

# SQLite serialises writers; a couple of workers is enough
workers = int(os.getenv("WEB_CONCURRENCY", "2"))

# Use Uvicorn's ASGI worker for FastAPI
worker_class = "uvicorn.workers.UvicornWorker"

# Request timeout (seconds); large project reports render slowly
timeout = 180

# Keep-alive connections (seconds)
keepalive = 5

# Logging
accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = "info"
