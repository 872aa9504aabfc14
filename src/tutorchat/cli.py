"""CLI entry point for tutorchat."""

import asyncio
import logging

import click
import uvicorn

from .backends import get_offline_backends, get_remote_backends
from .backends.rest import HttpSessionStore
from .core import CONTEXT_TYPES
from .dispatcher import SendResult
from .formatting import safe_format_date_with_prefix
from .provider import StoreError
from .widget import ChatWidget, format_message_line


@click.group()
@click.option("--log-level", default="WARNING", help="Logging level.")
def main(log_level: str):
    """Chat with the AI tutor from a terminal."""
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@main.command()
@click.option("--port", default=5000, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the in-memory development backend."""
    click.echo(f"Starting tutorchat dev backend on http://{host}:{port}/api")
    uvicorn.run("tutorchat.server:app", host=host, port=port, reload=False)


@main.command()
@click.option("--context-type", type=click.Choice(CONTEXT_TYPES), default="general")
@click.option("--context-id", default=None, help="Topic, module or learning path id.")
@click.option("--api-url", default=None, help="Chat API base URL.")
@click.option("--socket-url", default=None, help="Socket.IO server URL.")
@click.option("--token", default=None, help="Bearer token.")
@click.option("--realtime/--no-realtime", default=True, help="Try the real-time channel first.")
@click.option("--offline", is_flag=True, help="Use an in-process backend instead of a server.")
def chat(context_type, context_id, api_url, socket_url, token, realtime, offline):
    """Open a chat widget in the terminal. /quick N, /quit."""
    asyncio.run(_chat(context_type, context_id, api_url, socket_url, token, realtime, offline))


@main.command()
@click.option("--api-url", default=None, help="Chat API base URL.")
@click.option("--token", default=None, help="Bearer token.")
def sessions(api_url, token):
    """List your active chat sessions."""
    store = HttpSessionStore(api_url=api_url, token=token)
    try:
        found = asyncio.run(store.list_sessions())
    except StoreError as e:
        raise click.ClickException(str(e))

    if not found:
        click.echo("No chat sessions.")
    for s in found:
        when = safe_format_date_with_prefix(s.last_message_at)
        click.echo(f"{s.id}  {s.title}  [{s.context_type}]  {s.total_messages} messages  {when}")


async def _chat(context_type, context_id, api_url, socket_url, token, realtime, offline):
    if offline:
        store, transport = get_offline_backends()
        if not realtime:
            transport.disconnect()
    else:
        store, transport = await get_remote_backends(api_url, socket_url, token, realtime)

    widget = ChatWidget(store, transport, context_type=context_type, context_id=context_id)
    widget.timeline.add_listener(lambda m: click.echo(format_message_line(m)))
    widget.typing.add_listener(lambda on: on and click.echo("Tutor is typing..."))

    session = await widget.open()
    if session is None:
        raise click.ClickException("Could not start a chat session.")

    click.echo(f"== {widget.title} ({'real-time' if transport.connected else 'HTTP fallback'}) ==")
    if widget.context_hint:
        click.echo(widget.context_hint)
    for line in widget.render():
        click.echo(line)
    for i, (label, _) in enumerate(widget.quick_actions):
        click.echo(f"  /quick {i}: {label}")

    try:
        while True:
            text = await asyncio.to_thread(input, "> ")
            if text.strip() == "/quit":
                break
            if text.startswith("/quick"):
                try:
                    text = widget.apply_quick_action(int(text.split()[1]))
                except (IndexError, ValueError):
                    click.echo("No such quick action.")
                    continue
            else:
                widget.set_input(text)

            result = await widget.submit()
            if result is SendResult.REJECTED and widget.is_sending:
                click.echo("(still waiting for the last reply)")
            elif result is SendResult.FAILED:
                click.echo("Failed to send message. Try again.")
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        widget.close()
        if not offline and transport.connected:
            await transport.disconnect()
