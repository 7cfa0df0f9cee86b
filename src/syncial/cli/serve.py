"""API server command."""

import typer

from syncial.api.main import run_api

app = typer.Typer(help="Start the HTTP API (with periodic ledger sync)")


@app.callback(invoke_without_command=True)
def serve(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help="Bind host (default from config)"),
    port: int | None = typer.Option(None, "--port", help="Bind port (default from config)"),
    no_sync: bool = typer.Option(False, "--no-sync", help="Do not run the periodic sync loop in-process"),
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    settings = ctx.obj.get("settings") if ctx.obj else None
    run_api(host=host, port=port, settings=settings, background_sync=False if no_sync else None)


if __name__ == "__main__":
    app()
