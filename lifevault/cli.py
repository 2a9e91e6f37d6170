import os

import typer
import uvicorn

from .core.crypto import generate_pepper, generate_rsa_keypair
from .core.database import build_engine, create_db_and_tables
from .core.init_db import init_db
from .core.log import configure_logging
from .core.settings import Settings
from .models.User import User # Import models to register them with SQLModel
from .models.Asset import Asset, Document
from .models.Nominee import Nominee, NomineeLink
from .models.Audit import AuditLog
from .models.OTPChallenge import OTPChallenge

app = typer.Typer(help="LifeVault server management")

SECRET_KEYS = ("SERVER_PRIVATE_KEY", "SERVER_PUBLIC_KEY", "PIN_PEPPER")


def _env_value(pem: bytes) -> str:
    # Escape newlines for .env
    return '"' + pem.decode("utf-8").replace("\n", "\\n") + '"'


def _existing_secrets(lines: list[str]) -> list[str]:
    found = []
    for line in lines:
        name, _, value = line.partition("=")
        if name in SECRET_KEYS and value.strip("\"' "):
            found.append(name)
    return found


@app.command("keys")
def keys(
    env_file: str = typer.Option(".env", "--env-file", help="Env file to write"),
    force: bool = typer.Option(False, "--force", help="Replace existing secrets"),
    key_size: int = typer.Option(4096, "--key-size", help="RSA key size in bits"),
):
    """
    Generate the token signing key pair and PIN pepper into the env file.
    """
    lines = []
    if os.path.exists(env_file):
        with open(env_file, "r") as f:
            lines = f.read().splitlines()

    present = _existing_secrets(lines)
    if present and not force:
        typer.echo(f"{env_file} already has {', '.join(present)}. Use --force to replace them.")
        raise typer.Exit(code=1)

    typer.echo(f"Generating RSA Key Pair ({key_size} bits)...")
    private_pem, public_pem = generate_rsa_keypair(key_size)
    values = {
        "SERVER_PRIVATE_KEY": _env_value(private_pem),
        "SERVER_PUBLIC_KEY": _env_value(public_pem),
        "PIN_PEPPER": f'"{generate_pepper()}"',
    }

    new_lines = []
    for line in lines:
        name = line.split("=", 1)[0]
        if name in values:
            new_lines.append(f"{name}={values.pop(name)}")
        else:
            new_lines.append(line)
    new_lines.extend(f"{name}={value}" for name, value in values.items())

    with open(env_file, "w") as f:
        f.write("\n".join(new_lines))
        f.write("\n")

    typer.echo(f"SUCCESS: {env_file} updated with new server keys.")


@app.command("init-db")
def init_database():
    """
    Create tables and the bootstrap administrator.
    """
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    engine = build_engine(settings.DATABASE_URL)
    create_db_and_tables(engine)
    init_db(engine, settings)
    engine.dispose()
    typer.echo("Database initialized.")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """
    Run the API server.
    """
    uvicorn.run("lifevault.main:create_app", factory=True, host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
