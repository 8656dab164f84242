# SPDX-License-Identifier: Apache-2.0
"""Command line interface for submitting documents."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from crptapi.config import load_config
from crptapi.errors import ApiError, ClosedError, ConfigurationError, EncodingError, TransportError

EXIT_API_ERROR = 2
EXIT_TRANSPORT_ERROR = 3
EXIT_CONFIG_ERROR = 4

app = typer.Typer(add_completion=False, help="CRPT documents API client")

config_app = typer.Typer(name="config", help="Configuration commands", add_completion=False)
app.add_typer(config_app)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)-5s [%(name)s] %(message)s",
        force=True,
    )


@app.command()
def submit(
    document: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="JSON file with the document"
    ),
    signature: Optional[str] = typer.Option(
        None, "--signature", "-s", help="Detached signature (base64)"
    ),
    signature_file: Optional[Path] = typer.Option(
        None, "--signature-file", exists=True, dir_okay=False, help="File holding the signature"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="YAML settings file"
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="True-API base URL"),
    token: Optional[str] = typer.Option(None, "--token", help="Auth token"),
    product_group: Optional[str] = typer.Option(
        None, "--product-group", "-g", help="Product group code"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Submit an introduce-goods document and print the API response.

    Examples:
        crptapi submit doc.json --signature-file doc.sig -g milk
        crptapi submit doc.json -s c2lnbmF0dXJl --config crpt.yaml
    """
    _configure_logging(verbose)

    if signature is not None and signature_file is not None:
        typer.echo("❌ Use either --signature or --signature-file, not both", err=True)
        raise typer.Exit(1)
    if signature_file is not None:
        signature = signature_file.read_text(encoding="utf-8").strip()

    try:
        payload = json.loads(document.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        typer.echo(f"❌ {document} is not valid JSON: {e}", err=True)
        raise typer.Exit(1)

    try:
        settings = load_config(config)
        overrides = {
            key: value
            for key, value in (
                ("base_url", base_url),
                ("auth_token", token),
                ("product_group", product_group),
            )
            if value is not None
        }
        with settings.model_copy(update=overrides).build_client() as client:
            body = client.submit(payload, signature)
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except ApiError as e:
        typer.echo(f"❌ API error {e.status_code}: {e.body}", err=True)
        raise typer.Exit(EXIT_API_ERROR)
    except TransportError as e:
        typer.echo(f"❌ Transport error: {e}", err=True)
        raise typer.Exit(EXIT_TRANSPORT_ERROR)
    except (EncodingError, ClosedError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    typer.echo(body)


@config_app.command("show")
def config_show(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="YAML settings file"
    ),
):
    """Print the resolved settings with the token masked."""
    try:
        settings = load_config(config)
    except (ConfigurationError, FileNotFoundError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR)

    for key, value in settings.describe().items():
        typer.echo(f"{key}: {value}")


__all__ = ["app"]
