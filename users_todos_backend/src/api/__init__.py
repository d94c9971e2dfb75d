"""
FastAPI Users & Todos backend package.

Modules:
- settings: environment / .env configuration
- repositories: storage contract, in-memory backend, repository factory
- db: PostgreSQL backend over an asyncpg connection pool
- routers: users and todos route handlers
- main: application factory and the module-level `app`
"""
