"""farmchat/cli.py

Interactive console client for a running farmchat server.

Keeps the conversation client-side, posts it to
``/api/ai/smart-chat-enhanced`` each turn and renders the streamed reply with
Rich.
"""

from __future__ import annotations

# Standard Library
import argparse
import json
import os
import sys
from typing import Any, NoReturn

# Third-Party Libraries
import httpx
from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.theme import Theme

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

CHAT_PATH = "/api/ai/smart-chat-enhanced"


def display_help() -> None:
    """Display available commands and usage information."""
    help_text = """
**Available Commands:**

- `/help` - Show this help message
- `/clear` - Clear conversation history
- `/whoami` - Show the caller identity sent with each turn
- `/quit` or `/exit` - Leave the chat
- Any other text - Ask the farm assistant

**Try:**

- `buy 2kg tomatoes`
- `find organic farmers near me`
- `what vegetables are in season now?`
    """
    console.print(Panel(Markdown(help_text), title="Help", border_style="cyan"))


def caller_from_env() -> dict[str, Any] | None:
    """Build the optional caller identity from ``FARMCHAT_USER_*`` variables."""
    user = {
        "id": os.getenv("FARMCHAT_USER_ID"),
        "email": os.getenv("FARMCHAT_USER_EMAIL"),
        "role": os.getenv("FARMCHAT_USER_ROLE"),
        "phone": os.getenv("FARMCHAT_USER_PHONE"),
        "location": os.getenv("FARMCHAT_USER_LOCATION"),
    }
    user = {k: v for k, v in user.items() if v}
    return user or None


def send_turn(
    client: httpx.Client,
    history: list[dict[str, str]],
    user: dict[str, Any] | None,
) -> str:
    """Post the conversation and render the reply; returns the reply text.

    Raises:
        httpx.HTTPStatusError: The server answered 4xx/5xx.
    """
    body: dict[str, Any] = {"messages": history}
    if user:
        body["user"] = user

    with client.stream("POST", CHAT_PATH, json=body) as response:
        if response.status_code >= 400:
            response.read()
            response.raise_for_status()

        if response.headers.get("content-type", "").startswith("application/json"):
            response.read()
            reply = json.loads(response.text).get("content", "")
            console.print(Panel(Markdown(reply), title="[bold yellow]Off topic[/bold yellow]", border_style="yellow"))
            return reply

        reply = ""
        with Live(console=console, refresh_per_second=12) as live:
            for chunk in response.iter_text():
                reply += chunk
                live.update(
                    Panel(Markdown(reply), title="[bold green]Farm assistant[/bold green]", border_style="green")
                )
        return reply


def main() -> NoReturn:
    """Main entry point for the farmchat console."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="Chat with a running farmchat server.")
    parser.add_argument(
        "--url",
        default=os.getenv("FARMCHAT_URL", "http://localhost:8300"),
        help="Base URL of the farmchat server.",
    )
    args = parser.parse_args()

    user = caller_from_env()
    history: list[dict[str, str]] = []

    console.print(f"🌱 Connected to {args.url}", style="info")
    console.print("Type [bold]/help[/bold] for commands, or start chatting!\n", style="info")

    with httpx.Client(base_url=args.url, timeout=httpx.Timeout(10.0, read=120.0)) as client:
        while True:
            try:
                user_input = Prompt.ask("[bold blue]You[/bold blue]").strip()

                if not user_input:
                    continue

                if user_input.lower() in ["/quit", "/exit"]:
                    console.print("\n👋 Goodbye!\n", style="success")
                    sys.exit(0)

                elif user_input.lower() == "/help":
                    display_help()
                    continue

                elif user_input.lower() == "/clear":
                    history.clear()
                    console.print("🗑️  Conversation history cleared.\n", style="success")
                    continue

                elif user_input.lower() == "/whoami":
                    console.print(f"{user or 'Guest'}\n", style="info")
                    continue

                history.append({"role": "user", "content": user_input})
                console.print()
                reply = send_turn(client, history, user)
                history.append({"role": "assistant", "content": reply})
                console.print()

            except KeyboardInterrupt:
                console.print("\n\n👋 Interrupted. Goodbye!\n", style="warning")
                sys.exit(0)

            except httpx.HTTPStatusError as exc:
                history.pop()
                console.print(
                    f"\n❌ Server returned {exc.response.status_code}: {exc.response.text}\n",
                    style="error",
                )

            except httpx.HTTPError as exc:
                history.pop()
                console.print(f"\n❌ Error: {exc}\n", style="error")


if __name__ == "__main__":
    main()
