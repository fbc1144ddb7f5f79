from prometheus_client import CollectorRegistry

# Process-wide registry shared by the HTTP middleware and flow metrics.
REGISTRY = CollectorRegistry(auto_describe=True)
