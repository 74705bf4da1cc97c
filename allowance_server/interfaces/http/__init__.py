"""FastAPI routers, dependencies and error mapping."""
