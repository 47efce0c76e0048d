"""HTTP layer: FastAPI routers, edge middleware, cookies and error mapping."""
