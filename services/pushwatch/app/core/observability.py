from prometheus_client import Counter
from starlette_exporter import PrometheusMiddleware, handle_metrics

# Module level so repeated create_app() calls share one registration
WEBHOOK_DELIVERIES = Counter(
    "pushwatch_webhook_deliveries_total",
    "Webhook deliveries by outcome",
    ["outcome"],  # recorded|skipped|rejected|invalid|failed
)


def add_prometheus(app, app_name: str = "pushwatch") -> None:
    app.add_middleware(
        PrometheusMiddleware,
        app_name=app_name,
        prefix=app_name,
        group_paths=True,
    )
    app.add_route("/metrics", handle_metrics)
