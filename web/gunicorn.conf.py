import os

wsgi_app = "storefront.wsgi:application"


def cpu():
    return max(1, (os.cpu_count() or 1))


# Worker processes
workers = int(os.getenv("GUNI_WORKERS", str(min(max(2, cpu() * 2), 8))))

# Threads per worker; checkout requests block on the DB, cache and Stripe
worker_class = "gthread"
threads = int(os.getenv("GTHREADS", "4"))

# Stripe calls are synchronous inside a request; keep this above their timeout
timeout = int(os.getenv("GUNI_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

preload_app = True
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

# Application logs go through Django's LOGGING (JSON); these are gunicorn's own
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
