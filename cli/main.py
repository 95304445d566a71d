import asyncio

import typer
import uvicorn

from backend.app.config import settings
from backend.app.errors import AppError
from backend.app.models.user import Role

app = typer.Typer(help="Featureboard - feature requests, votes and triage")


@app.command()
def start(reload: bool = typer.Option(False, help="Reload on code changes")) -> None:
    """Start the Featureboard server."""
    typer.echo(f"Starting Featureboard on {settings.host}:{settings.port}...")
    uvicorn.run(
        "backend.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
    )


@app.command("init-db")
def init_db_command() -> None:
    """Create the database schema."""
    from backend.app.db import init_db

    asyncio.run(init_db())
    typer.echo(f"Database ready at {settings.db_path}")


async def _create_admin(email: str, password: str | None, name: str | None) -> str:
    from backend.app.db import async_session, init_db
    from backend.app.services import auth_service

    await init_db()
    async with async_session() as db:
        if password:
            user = await auth_service.register(db, email, password, name, role=Role.ADMIN)
        else:
            user = await auth_service.set_role(db, email, Role.ADMIN)
        await db.commit()
        return user.email


@app.command("create-admin")
def create_admin(
    email: str,
    password: str | None = typer.Option(
        None, help="Register a new admin with this password; omit to promote an existing user"
    ),
    name: str | None = typer.Option(None, help="Display name for a new admin"),
) -> None:
    """Create a new admin account, or promote an existing user to ADMIN."""
    try:
        admin_email = asyncio.run(_create_admin(email, password, name))
    except AppError as exc:
        typer.echo(f"Error: {exc.detail}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"{admin_email} is now an admin")


if __name__ == "__main__":
    app()
