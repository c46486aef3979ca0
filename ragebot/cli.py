from datetime import datetime

import typer
from rich.console import Console
from rich.table import Table
from sqlmodel import Session

from ragebot import config
from ragebot.errors import RagebotError
from ragebot.roast import DIFFICULTIES, DEFAULT_DIFFICULTY, RoastConversation

app = typer.Typer(name="ragebot", help="Productivity roast bot")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="API server host"),
    port: int = typer.Option(config.PORT, help="API server port"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
) -> None:
    """Start the RageBot API server."""
    import uvicorn

    console.print(f"[green]Starting RageBot server on {host}:{port}[/green]")
    uvicorn.run("ragebot.main:app", host=host, port=port, reload=reload)


@app.command()
def chat(
    difficulty: str = typer.Option(None, help="easy, medium or hard (asked for when omitted)"),
) -> None:
    """Chat with the roast bot in the terminal. Type "exit" to quit."""
    import statsd

    from ragebot.assistant import build_assistant

    try:
        assistant = build_assistant(statsd.StatsClient(host=config.GRAPHITE_HOST, port=config.GRAPHITE_HOST_PORT, prefix="ragebot.cli"))
    except RagebotError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(code=1)

    if difficulty is None:
        difficulty = typer.prompt(f"Choose difficulty ({'/'.join(DIFFICULTIES)})", default=DEFAULT_DIFFICULTY)
    if difficulty.strip().lower() not in DIFFICULTIES:
        console.print(f"[yellow]Invalid difficulty level. Defaulting to {DEFAULT_DIFFICULTY}.[/yellow]")
        difficulty = DEFAULT_DIFFICULTY
    difficulty = difficulty.strip().lower()
    console.print(f"Difficulty set to [bold]{difficulty}[/bold]")

    conversation = RoastConversation()
    console.print('Start chatting! (type "exit" to quit)')
    while True:
        message = typer.prompt("You")
        if message.strip().lower() == "exit":
            console.print("Goodbye!")
            break
        if not message.strip():
            continue

        try:
            reply = assistant.roast(conversation, message, difficulty)
        except RagebotError as e:
            console.print(f"[red]{e.message}[/red]")
            continue

        console.print(f"[cyan]AI:[/cyan] {reply.text}")
        console.print(f"[dim]Average score: {reply.formatted_average}/100[/dim]")


@app.command()
def history(email: str = typer.Argument(..., help="Email of the user whose chats to list")) -> None:
    """Print a user's saved chat sessions."""
    from ragebot.db import create_tables, engine
    from ragebot.store import get_user_by_email, list_chat_logs

    create_tables(engine)
    with Session(engine) as session:
        user = get_user_by_email(session, email)
        if user is None:
            console.print(f"[red]No user with email {email}[/red]")
            raise typer.Exit(code=1)
        chat_logs = list_chat_logs(session, user.id)

    if not chat_logs:
        console.print("No previous chats found.")
        return

    table = Table(title=f"Chat history for {user.email}")
    table.add_column("Date")
    table.add_column("Score", justify="right")
    table.add_column("Messages", justify="right")
    table.add_column("Summary")
    for chat_log in chat_logs:
        table.add_row(
            datetime.fromtimestamp(chat_log.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S"),
            f"{chat_log.average_score:.2f}/100",
            str(len(chat_log.messages)),
            chat_log.summary or "No summary available",
        )
    console.print(table)


if __name__ == "__main__":
    app()
