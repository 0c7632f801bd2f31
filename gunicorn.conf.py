import os

# Bind to the port provided via the PORT environment variable, defaulting to
# 5000.
bind = f"0.0.0.0:{os.getenv('PORT', '5000')}"

# The overdue scheduler thread lives inside each worker process. Run a single
# worker so invoices are reconciled once per interval rather than once per
# worker; use `flask invoices mark-overdue` from cron when scaling out.
workers = 1
threads = int(os.getenv("GUNICORN_THREADS", "4"))
timeout = 30
