import prometheus_client
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

# Guard against duplicated metric registration when the module is imported
# multiple times (for example, when running under a reloader).
PERMISSION_CHECKS = getattr(prometheus_client, "shiftly_PERMISSION_CHECKS", None)
PERMISSION_CACHE_LOOKUPS = getattr(prometheus_client, "shiftly_PERMISSION_CACHE_LOOKUPS", None)
PERMISSION_CACHE_EVICTIONS = getattr(
    prometheus_client, "shiftly_PERMISSION_CACHE_EVICTIONS", None
)
PERMISSION_STORE_ERRORS = getattr(prometheus_client, "shiftly_PERMISSION_STORE_ERRORS", None)

if PERMISSION_CHECKS is None:
    PERMISSION_CHECKS = Counter(
        "permission_checks_total",
        "Total permission checks",
        ["mode", "result"],  # mode: all/any, result: granted/denied
    )
    PERMISSION_CACHE_LOOKUPS = Counter(
        "permission_cache_lookups_total",
        "Resolved-permission cache lookups",
        ["result"],  # hit/miss/expired
    )
    PERMISSION_CACHE_EVICTIONS = Counter(
        "permission_cache_evictions_total",
        "Resolved-permission cache entries evicted by invalidation",
        ["scope"],  # user/global
    )
    PERMISSION_STORE_ERRORS = Counter(
        "permission_store_errors_total",
        "Failures reaching the permission store",
        ["operation"],
    )

    prometheus_client.shiftly_PERMISSION_CHECKS = PERMISSION_CHECKS  # type: ignore[attr-defined]
    prometheus_client.shiftly_PERMISSION_CACHE_LOOKUPS = PERMISSION_CACHE_LOOKUPS  # type: ignore[attr-defined]
    prometheus_client.shiftly_PERMISSION_CACHE_EVICTIONS = PERMISSION_CACHE_EVICTIONS  # type: ignore[attr-defined]
    prometheus_client.shiftly_PERMISSION_STORE_ERRORS = PERMISSION_STORE_ERRORS  # type: ignore[attr-defined]


def record(counter, **labels) -> None:
    """Increment a labelled counter; metrics failures never break callers."""
    try:
        if counter is not None:
            counter.labels(**labels).inc()
    except Exception:
        pass


def metrics_response():
    data = generate_latest()
    return data, CONTENT_TYPE_LATEST
