"""Command-line interface for Aislewise."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Awaitable, Callable, Optional

import typer
from pydantic import BaseModel, TypeAdapter, ValidationError

from aislewise.config import get_settings
from aislewise.llm.client import MissingCredentialsError, build_model_client
from aislewise.logging_utils import configure_logging
from aislewise.models.shopping import Ingredient
from aislewise.pipeline.orchestrator import (
    RecipeValidationError,
    ShoppingListGenerator,
    build_generator,
)

app = typer.Typer(help="Turn recipes into aisle-grouped shopping lists.")

_INGREDIENTS_ADAPTER = TypeAdapter(list[Ingredient])


def _run(work_factory: Callable[[ShoppingListGenerator], Awaitable[BaseModel]]) -> BaseModel:
    """Build a generator, run one request against it, and close the client."""

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, [settings.llm_api_key or ""])
    try:
        client = build_model_client(settings)
    except MissingCredentialsError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    async def _execute() -> BaseModel:
        try:
            return await work_factory(build_generator(client, settings))
        finally:
            await client.aclose()

    try:
        return asyncio.run(_execute())
    except RecipeValidationError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _emit(result: BaseModel, pretty: bool) -> None:
    payload = result.model_dump(mode="json", by_alias=True, exclude_none=True)
    typer.echo(json.dumps(payload, indent=2 if pretty else None))
    warning = getattr(result, "warning", None)
    if warning:
        typer.secho(f"Warning: {warning}", fg=typer.colors.YELLOW, err=True)


@app.command("shopping-list")
def shopping_list(
    recipe_name: str = typer.Argument(..., help="Recipe to build a shopping list for."),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty-print output JSON."),
) -> None:
    """
    Generate a shopping list for RECIPE_NAME grouped by supermarket aisle.
    """

    result = _run(lambda generator: generator.generate(recipe_name))
    _emit(result, pretty)


@app.command()
def ingredients(
    recipe_name: str = typer.Argument(..., help="Recipe to list ingredients for."),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty-print output JSON."),
) -> None:
    """List the ingredients and quantities for RECIPE_NAME."""

    result = _run(lambda generator: generator.list_ingredients(recipe_name))
    _emit(result, pretty)


@app.command()
def organize(
    ingredients_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help='JSON file holding [{"ingredient": ..., "quantity": ...}, ...].',
    ),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty-print output JSON."),
) -> None:
    """Group the ingredients in INGREDIENTS_PATH by supermarket aisle."""

    try:
        items = _INGREDIENTS_ADAPTER.validate_json(ingredients_path.read_bytes())
    except ValidationError as exc:
        typer.secho(f"Invalid ingredients file: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    result = _run(lambda generator: generator.organize(items))
    _emit(result, pretty)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", envvar="AISLEWISE_SERVER_HOST"),
    port: int = typer.Option(8000, "--port", envvar="AISLEWISE_SERVER_PORT"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    """Run the HTTP API with uvicorn."""

    import uvicorn

    uvicorn.run("aislewise.server.app:app", host=host, port=port, reload=reload)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for `python -m aislewise`."""
    app(prog_name="aislewise", args=argv)


if __name__ == "__main__":
    main()
