"""
Application wiring: routes mounted under the API prefix, tables created at startup.
"""

from sqlalchemy import inspect

from settings import settings


def _routes(app):
    """(METHOD, path) pairs as published in the OpenAPI schema."""
    return {
        (method.upper(), path)
        for path, operations in app.openapi()["paths"].items()
        for method in operations
    }


def test_social_routes_are_mounted():
    from server import app

    prefix = settings.API_PREFIX
    routes = _routes(app)
    expected = [
        ("GET", "/"),
        ("POST", f"{prefix}/auth/register"),
        ("POST", f"{prefix}/auth/login"),
        ("GET", f"{prefix}/auth/me"),
        ("GET", f"{prefix}/designs"),
        ("POST", f"{prefix}/designs"),
        ("GET", f"{prefix}/designs/{{design_id}}"),
        ("DELETE", f"{prefix}/designs/{{design_id}}"),
        ("POST", f"{prefix}/designs/{{design_id}}/like"),
        ("DELETE", f"{prefix}/designs/{{design_id}}/like"),
        ("GET", f"{prefix}/designs/{{design_id}}/comment"),
        ("POST", f"{prefix}/designs/{{design_id}}/comment"),
        ("POST", f"{prefix}/designs/{{design_id}}/share"),
        ("GET", f"{prefix}/users/{{user_id}}"),
        ("POST", f"{prefix}/users/{{user_id}}/follow"),
        ("DELETE", f"{prefix}/users/{{user_id}}/follow"),
        ("GET", f"{prefix}/notifications"),
        ("PATCH", f"{prefix}/notifications/read-all"),
    ]
    missing = [route for route in expected if route not in routes]
    assert missing == []


async def test_init_models_creates_tables(monkeypatch, db_engine):
    import db

    monkeypatch.setattr(db, "engine", db_engine)
    await db.init_models()

    async with db_engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    assert {"users", "designs", "design_likes", "comments", "follows", "notifications"} <= tables
