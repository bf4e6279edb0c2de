# Gunicorn configuration
import multiprocessing

bind = "127.0.0.1:8000"
workers = multiprocessing.cpu_count() * 2 + 1
worker_class = "sync"
# Ingestion retries sleep between attempts; leave room for the full backoff
timeout = 60
keepalive = 5
errorlog = "/var/log/dsa-tracker/gunicorn-error.log"
accesslog = "/var/log/dsa-tracker/gunicorn-access.log"
loglevel = "info"
wsgi_app = "app:create_app('production')"
