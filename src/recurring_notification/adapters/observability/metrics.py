from prometheus_client import Counter, Histogram

NOTIFICATION_DISPATCH = Counter(
    "notification_dispatch_total",
    "Notificações recorrentes por canal e resultado",
    ["channel", "status"],
)

NOTIFICATION_RUN_DURATION = Histogram(
    "notification_run_duration_seconds",
    "Duração de uma rodada de disparo",
    ["flow_type"],
)

NOTIFICATION_API_LATENCY = Histogram(
    "notification_api_request_seconds",
    "Latência das chamadas ao serviço de notificação",
    ["channel"],
)
