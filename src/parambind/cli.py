from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from parambind.compiler.class_level import compile_class_level_handlers
from parambind.compiler.method_level import compile_method_handlers
from parambind.config import load_service_definition
from parambind.domain.errors import ParamBindError
from parambind.orchestrator.pipeline import ServiceBinding
from parambind.provider import MappingParamProvider


app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log compile/bind details"),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _load(path: str):
    p = Path(path).expanduser().resolve()
    if not p.is_file():
        raise typer.BadParameter(f"Service definition does not exist: {p}")
    try:
        return p, load_service_definition(p)
    except ParamBindError as exc:
        console.print(f"[bold red]error[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)


def _pairs(values: Optional[list[str]], option: str) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"{option} expects key=value, got {item!r}")
        out[key] = value
    return out


def _parse_arg(raw: str) -> Any:
    # JSON where it parses (numbers, lists, objects, null); plain string otherwise
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@app.command()
def inspect(
    definition: str = typer.Argument(..., help="Path to a JSON service definition"),
) -> None:
    """Compile every handler list and print it."""
    path, service = _load(definition)
    console.print(f"[bold green]parambind[/bold green] inspect: {path}")

    try:
        class_handlers = compile_class_level_handlers(service.interface, settings=service.settings)
        method_handlers = [
            (m, compile_method_handlers(m, settings=service.settings)) for m in service.methods
        ]
    except ParamBindError as exc:
        console.print(f"[bold red]error[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold")
    table.add_column("SCOPE", no_wrap=True)
    table.add_column("#", no_wrap=True)
    table.add_column("HANDLER")

    for i, h in enumerate(class_handlers):
        table.add_row(service.interface.name, str(i), escape(repr(h)))
    for m, handlers in method_handlers:
        label = f"{m.http_method} {m.name}"
        for i, h in enumerate(handlers):
            table.add_row(label, str(i), escape(repr(h)))

    console.print(table)
    console.print(
        f"Class-level handlers: {len(class_handlers)}, methods: {len(method_handlers)}"
    )


@app.command()
def preview(
    definition: str = typer.Argument(..., help="Path to a JSON service definition"),
    method: str = typer.Argument(..., help="Method name to bind"),
    args: Optional[list[str]] = typer.Argument(None, help="Positional call arguments (JSON or text)"),
    header_param: Optional[list[str]] = typer.Option(None, help="Provider header value key=value"),
    query_param: Optional[list[str]] = typer.Option(None, help="Provider query value key=value"),
    url_param: Optional[list[str]] = typer.Option(None, help="Provider URL value key=value"),
) -> None:
    """Build the request a call would send, without sending it."""
    _, service = _load(definition)
    provider = MappingParamProvider(
        headers=_pairs(header_param, "--header-param"),
        queries=_pairs(query_param, "--query-param"),
        urls=_pairs(url_param, "--url-param"),
    )
    binding = ServiceBinding(service, provider=provider)

    try:
        request = binding.build_request(method, *[_parse_arg(a) for a in args or []])
    except ParamBindError as exc:
        console.print(f"[bold red]error[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print(f"[bold]{request.method}[/bold] {request.url}")
    for name, value in request.headers:
        console.print(f"  {name}: {value}", markup=False)
    if request.body is not None:
        console.print(f"  [dim]Content-Type: {request.body.content_type}[/dim]")
        console.print(request.body.content.decode("utf-8", errors="replace"), markup=False)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
