"""
Gunicorn configuration for keybridge production deployment
"""
import os

# Server socket
bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"
backlog = 2048

# A single process with threads: per-(user, app) reconciliation locks live in
# process memory, so membership events must all land in the same worker.
workers = 1
worker_class = 'gthread'
threads = int(os.environ.get('GUNICORN_THREADS', '8'))
# Remote key calls are bounded by REMOTE_TIMEOUT_SECONDS per app
timeout = int(os.environ.get('GUNICORN_TIMEOUT', '60'))
graceful_timeout = 30
keepalive = 2

# Logging
accesslog = '-'  # Log to stdout
errorlog = '-'   # Log to stderr
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(L)s'

# Process naming
proc_name = 'keybridge'

# Server mechanics
daemon = False
pidfile = None

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def when_ready(server):
    """Called just after the server is started."""
    print(f"keybridge is ready. Listening on {bind}")


def on_exit(server):
    """Called just before exiting."""
    print("Shutting down keybridge...")
