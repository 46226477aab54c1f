"""HTTP layer: table definitions, request/response schemas, dependencies and routers."""
