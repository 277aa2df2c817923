from prometheus_client import Counter, Histogram, Gauge, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        # registered by an earlier import, reuse it
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "smart_todo_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "smart_todo_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

AI_FEATURE_TOTAL = get_or_create_metric(
    "smart_todo_ai_feature_total",
    "Task processor calls by feature and answer source",
    Counter,
    labelnames=["feature", "source"],
)

MODEL_FALLBACK_TOTAL = get_or_create_metric(
    "smart_todo_model_fallback_total",
    "Feature calls answered by local rules although a model is configured",
    Counter,
)

SUBTASKS_CREATED_TOTAL = get_or_create_metric(
    "smart_todo_subtasks_created_total",
    "Subtask persistence outcomes",
    Counter,
    labelnames=["status"],
)

TASKS_STORED = get_or_create_metric(
    "smart_todo_tasks_stored", "Tasks currently held by the task store", Gauge
)
