"""Decorators for reelmatch CLI commands."""

import functools
import logging
from typing import Callable, Any
import typer
from rich.console import Console

from .errors import (
    ConfigError,
    ContentNotFoundError,
    ExternalServiceError,
    ReelmatchError,
    StoreError,
)

logger = logging.getLogger(__name__)
console = Console()


def handle_errors(func: Callable) -> Callable:
    """
    Decorator to handle common command errors.

    Reduces code duplication by centralizing error handling for:
    - ContentNotFoundError: Unknown content id
    - ConfigError: Missing API keys or invalid settings
    - ExternalServiceError: Gemini / Pinecone failures
    - StoreError: Database failures
    - FileNotFoundError, ValueError: Bad input
    - General exceptions: Unexpected errors
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except ContentNotFoundError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except ConfigError as e:
            console.print(f"[bold red]Configuration error:[/bold red] {e}")
            console.print("[yellow]Tip: Set values with 'reelmatch config' or environment variables[/yellow]")
            raise typer.Exit(code=1)
        except ExternalServiceError as e:
            console.print(f"[bold red]External service error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except StoreError as e:
            console.print(f"[bold red]Database error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except FileNotFoundError as e:
            console.print(f"[bold red]Error:[/bold red] File not found: {e}")
            raise typer.Exit(code=1)
        except ValueError as e:
            console.print(f"[bold red]Error:[/bold red] Invalid input: {e}")
            raise typer.Exit(code=1)
        except ReelmatchError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(code=130)
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            console.print(f"[bold red]Unexpected error:[/bold red] {e}")
            raise typer.Exit(code=1)

    return wrapper
