"""
Core package — cross-cutting concerns.

Modules:
    config          — environment variables & settings
    logging_config  — structured JSON logging, request-scoped loggers
    errors          — exception hierarchy & handlers
    middleware      — request id, access log, recovery, timeout, CORS
    database        — async PostgreSQL connection pool
    server          — HTTP server run / graceful shutdown
"""
