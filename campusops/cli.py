"""Campus portal CLI tool (campusctl)."""

import typer

app = typer.Typer(name="campusctl", help="Campus Operations Portal CLI")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")


@db_app.command("create")
def db_create():
    """Create the MySQL database if it doesn't exist."""
    import pymysql
    from sqlalchemy.engine import make_url
    from campusops.core.config import settings

    url = make_url(settings.DATABASE_URL)
    if not url.drivername.startswith("mysql"):
        typer.echo(f"Nothing to create for {url.drivername}; run 'db init' instead")
        raise typer.Exit()

    conn = pymysql.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username,
        password=url.password or "",
    )
    try:
        cursor = conn.cursor()
        cursor.execute(
            f"CREATE DATABASE IF NOT EXISTS `{url.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
        typer.echo(f"Database '{url.database}' created (or already exists)")
    finally:
        conn.close()


@db_app.command("init")
def db_init():
    """Create all tables."""
    import campusops.models  # noqa: F401  registers the mappers
    from campusops.db.base import Base
    from campusops.db.session import engine

    Base.metadata.create_all(bind=engine)
    typer.echo("Tables created")


@db_app.command("seed")
def db_seed(
    with_users: bool = typer.Option(True, help="Also create the demo users"),
):
    """Seed roles, the permission matrix and demo users."""
    from campusops.db.session import SessionLocal
    from campusops.db.seeds.seed_roles import seed_roles
    from campusops.db.seeds.seed_users import seed_users

    db = SessionLocal()
    try:
        seed_roles(db)
        if with_users:
            seed_users(db)
    finally:
        db.close()
    typer.echo("All seeds applied")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(True, help="Auto-reload"),
):
    """Start the FastAPI development server."""
    import uvicorn
    uvicorn.run("campusops.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
