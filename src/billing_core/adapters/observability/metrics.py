from prometheus_client import Counter, Histogram

PLAN_STATUS_TRANSITIONS = Counter(
    "plan_status_transitions_total",
    "Titulares movidos de status de plano pela sincronização",
    ["status"],
)

PLAN_STATUS_SYNC_DURATION = Histogram(
    "plan_status_sync_duration_seconds",
    "Duração de um lote de sincronização de status de plano",
)
