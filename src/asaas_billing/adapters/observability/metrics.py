from prometheus_client import Counter, Histogram

ASAAS_REQUESTS = Counter(
    "asaas_request_total",
    "Chamadas HTTP ao Asaas por resultado",
    ["method", "outcome"],
)

ASAAS_LATENCY = Histogram(
    "asaas_request_seconds",
    "Latência das chamadas ao Asaas",
    ["method"],
)

ASAAS_WEBHOOKS = Counter(
    "asaas_webhook_total",
    "Webhooks do Asaas processados",
    ["event", "result"],
)
