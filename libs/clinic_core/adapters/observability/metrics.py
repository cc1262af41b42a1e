from prometheus_client import Counter, Histogram

# Métricas registradas no REGISTRY padrão: o endpoint /metrics/ do
# django_prometheus já as exporta (inclusive em modo multiprocess,
# quando PROMETHEUS_MULTIPROC_DIR está definido).

# HTTP (views REST)
HTTP_REQUEST_LATENCY = Histogram(
    'clinic_request_duration_seconds',
    'Latência de requisições HTTP',
    ['method', 'view', 'status'],
)
HTTP_REQUEST_COUNT = Counter(
    'clinic_requests_total',
    'Total de requisições HTTP',
    ['method', 'view', 'status'],
)
