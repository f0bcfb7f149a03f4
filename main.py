#!/usr/bin/env python3
"""main.py

Interactive console for the LARIAN assistant core.
Each message goes through the query parser; understood project queries are
shown as a filter table, everything else is answered by the language model.
"""

from __future__ import annotations

# Standard Library
import asyncio
import logging
import sys
from typing import Any, NoReturn

# Third-Party Libraries
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.theme import Theme

# Load environment variables before the settings object is built
load_dotenv()

# Local Modules
from assistant.config import cfg  # noqa: E402
from assistant.memory import ConversationLog  # noqa: E402
from assistant.models import ParseQueryResult, ProjectContext  # noqa: E402
from assistant.parser import parse_query  # noqa: E402
from assistant.responder import get_conversational_response  # noqa: E402

logging.basicConfig(
    level=cfg.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
if cfg.assistant_debug_patterns:
    logging.getLogger("assistant").setLevel(logging.DEBUG)

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "user": "bold blue",
        "assistant": "green",
    }
)
console = Console(theme=custom_theme)

# Demo catalogue used when no project store is attached.
SAMPLE_COLLABS: list[str] = ["hoho", "Daft Punk", "Nina Kraviz", "Skrillex"]
SAMPLE_STYLES: list[str] = ["Afro House", "Tech House", "Techno", "House", "Drum and Bass"]
SAMPLE_CONTEXT = ProjectContext(project_count=43, collab_count=len(SAMPLE_COLLABS), style_count=len(SAMPLE_STYLES))


def display_help() -> None:
    """Display available commands and usage information."""
    help_text = """
**Available Commands:**

- `/help` - Show this help message
- `/clear` - Clear conversation history and remembered filters
- `/stats` - Show session statistics
- `/quit` or `/exit` - Leave the console
- Any other text - Ask about your projects or just chat

**Examples:**

- `combien de projets sous les 70%`
- `list my ghost prod`
- `passe les projets en cours à terminé`
- `session hoho du jour, mix terminé`
    """
    console.print(Panel(Markdown(help_text), title="Help", border_style="cyan"))


def display_stats(log: ConversationLog, last_filters: dict[str, Any]) -> None:
    """Display session statistics.

    Args:
        log: The session's conversation log.
        last_filters: Filters remembered from the previous project query.
    """
    backend_model = cfg.openai_model if cfg.llm_backend == "openai" else cfg.ollama_model
    stats_text = f"""
**Session Statistics:**

- Messages in context: {len(log)}/{log.max_messages}
- Backend: `{cfg.llm_backend}` (`{backend_model}`)
- Remembered filters: `{last_filters or "none"}`
    """
    console.print(Panel(Markdown(stats_text), title="Statistics", border_style="cyan"))


def render_result(result: ParseQueryResult) -> Table:
    """Build a table describing an understood query."""
    table = Table(title=f"{result.type} ({result.lang or '?'})", border_style="green")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in result.filters.items():
        table.add_row(f"filter.{key}", str(value))
    if result.update_data is not None:
        for key, value in result.update_data.to_dict().items():
            table.add_row(f"update.{key}", str(value))
    if result.fields_to_show:
        table.add_row("fields", ", ".join(result.fields_to_show))
    return table


def main() -> NoReturn:
    """Main entry point for the LARIAN console."""
    console.print(Panel("LARIAN assistant - project queries and chat", border_style="cyan"))
    console.print("Type [bold]/help[/bold] for commands, or start chatting!\n", style="info")

    log = ConversationLog()
    last_filters: dict[str, Any] = {}

    while True:
        try:
            user_input = Prompt.ask("[bold blue]You[/bold blue]").strip()

            if not user_input:
                continue

            if user_input.lower() in ["/quit", "/exit"]:
                console.print("\nBye!\n", style="success")
                sys.exit(0)

            elif user_input.lower() == "/help":
                display_help()
                continue

            elif user_input.lower() == "/clear":
                log.clear()
                last_filters = {}
                console.print("Conversation history cleared.\n", style="success")
                continue

            elif user_input.lower() == "/stats":
                display_stats(log, last_filters)
                continue

            history = log.snapshot()
            result = parse_query(user_input, SAMPLE_COLLABS, SAMPLE_STYLES, history, last_filters)
            log.add("user", user_input)

            console.print()
            if result.understood:
                console.print(render_result(result))
                last_filters = dict(result.filters)
                log.add("assistant", f"{result.type}: {result.to_dict()}")
            else:
                with console.status("[bold green]Thinking...", spinner="dots"):
                    response = asyncio.run(
                        get_conversational_response(user_input, SAMPLE_CONTEXT, history)
                    )
                console.print(
                    Panel(
                        Markdown(response),
                        title="[bold green]LARIAN[/bold green]",
                        border_style="green",
                    )
                )
                if response:
                    log.add("assistant", response)
            console.print()

        except KeyboardInterrupt:
            console.print("\n\nInterrupted. Bye!\n", style="warning")
            sys.exit(0)

        except Exception as exc:
            console.print(f"\nError: {exc}\n", style="error")
            console.print("You can continue chatting or type /quit to exit.\n", style="info")


if __name__ == "__main__":
    main()
