from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Метрики для HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Метрики для кэша
cache_hits_total = Counter('cache_hits_total', 'Total cache hits')
cache_misses_total = Counter('cache_misses_total', 'Total cache misses')

# Прогресс по каталогам: advanced / conflict / exhausted
catalog_advance_total = Counter(
    'catalog_advance_total',
    'Catalog advance attempts by outcome',
    ['catalog', 'outcome']
)

streak_transitions_total = Counter(
    'streak_transitions_total',
    'Recorded activities by streak transition',
    ['action']
)

focus_flush_total = Counter(
    'focus_flush_total',
    'Focus flushes by outcome',
    ['outcome']
)

def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
