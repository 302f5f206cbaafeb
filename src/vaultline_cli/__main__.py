from __future__ import annotations
import asyncio
import json
import pathlib
import time
import typer
from rich import print
import requests

from vaultline_api.entries import render_entries
from vaultline_api.logutil import setup_logging
from vaultline_api.merge import render_lines, target_path
from vaultline_api.models import InboundMessage, TargetKind
from vaultline_api.pipeline import build_pipeline
from vaultline_api.settings import settings
from vaultline_api.signature import sign_body
from vaultline_api.sync import commit_message
from vaultline_api.timefmt import format_timestamp

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _now_ms() -> int:
    return int(time.time() * 1000)


@app.command()
def render(
    text: str,
    timestamp_ms: int = typer.Option(None, help="Event time in epoch ms (default: now)"),
):
    """Show where TEXT would land and the lines it would produce, without git."""
    parts = format_timestamp(timestamp_ms if timestamp_ms is not None else _now_ms(), settings.timezone)
    entries = render_entries(text, parts.time, split=settings.split_segments)
    path = target_path(
        pathlib.Path("<vault>"),
        TargetKind(settings.target_kind),
        parts,
        settings.diary_dir,
        settings.topic_file,
    )
    print(f"[cyan]Target[/cyan]: {path}")
    print(f"[cyan]Commit[/cyan]: {commit_message(parts)}")
    for line in render_lines(entries):
        print(line.rstrip("\n"))


@app.command()
def append(
    text: str,
    timestamp_ms: int = typer.Option(None, help="Event time in epoch ms (default: now)"),
    message_id: str = typer.Option(None, help="Message id used for marker dedup"),
    no_jitter: bool = typer.Option(False, "--no-jitter", help="Skip the pre-git random delay"),
):
    """Append TEXT to the configured vault and push it."""
    setup_logging(settings.log_level)
    message = InboundMessage(
        text=text.strip(),
        timestamp_ms=timestamp_ms if timestamp_ms is not None else _now_ms(),
        message_id=message_id,
    )
    pipeline = build_pipeline(settings)
    outcome = asyncio.run(pipeline.run(message, stagger=not no_jitter))
    print(f"[green]{outcome.value}[/green]")


@app.command()
def sign_body_file(
    path: str,
    secret: str = typer.Option(None, help="Channel secret (default: configured)"),
):
    """Print the x-line-signature for the raw bytes of PATH."""
    body = pathlib.Path(path).read_bytes()
    print(sign_body(body, secret or settings.channel_secret))


@app.command()
def send_event(
    url: str = typer.Option(..., help="POST URL for /webhook"),
    text: str = typer.Option("hello from vaultline", help="Message text"),
    secret: str = typer.Option(None, help="Channel secret (default: configured)"),
    message_id: str = typer.Option(None, help="LINE message id"),
):
    """Send a signed LINE-style text message event to a running service."""
    message = {"type": "text", "text": text}
    if message_id:
        message["id"] = message_id
    payload = {"events": [{"type": "message", "timestamp": _now_ms(), "message": message}]}
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    headers = {
        "content-type": "application/json",
        "x-line-signature": sign_body(body, secret or settings.channel_secret),
    }
    resp = requests.post(url, data=body, headers=headers, timeout=30)
    print(f"[cyan]Status[/cyan]: {resp.status_code}")
    try:
        print(resp.json())
    except Exception:
        print(resp.text)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1"),
    port: int = typer.Option(8000),
):
    """Run the webhook service with uvicorn."""
    import uvicorn

    uvicorn.run("vaultline_api.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
