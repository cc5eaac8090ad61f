import time

from flask import g, request
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# Prometheus metrics
REQUEST_COUNT = Counter('listing_service_requests_total', 'Total requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('listing_service_request_duration_seconds', 'Request duration')
LOGIN_ATTEMPTS = Counter('listing_service_login_attempts_total', 'Login attempts', ['status'])
PRODUCT_COUNT = Counter('listing_service_products_total', 'Products written', ['operation'])


def _start_timer():
    g.start_time = time.time()


def _record_request(response):
    endpoint = request.url_rule.rule if request.url_rule else 'unmatched'
    REQUEST_COUNT.labels(request.method, endpoint, str(response.status_code)).inc()
    start_time = g.pop('start_time', None)
    if start_time is not None:
        REQUEST_DURATION.observe(time.time() - start_time)
    return response


def metrics_view():
    resp = generate_latest()
    return resp, 200, {'Content-Type': CONTENT_TYPE_LATEST}


def init_app(app):
    app.before_request(_start_timer)
    app.after_request(_record_request)
    app.add_url_rule('/metrics', 'metrics', metrics_view)
