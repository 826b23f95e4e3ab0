"""Command-line interface for issuing a single retrying request."""

import asyncio
import json

import click

from .client import create
from .exceptions import ConfigurationError, RetryExhaustedError, TransportError
from .logging import configure_logging
from .models import ClientConfig, RetryOptions, Settings


def _parse_headers(values):
    headers = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(
                f"Expected 'Name: value', got '{value}'", param_hint="--header"
            )
        headers[name.strip()] = content.strip()
    return headers


def _echo_entry(entry, direction):
    click.echo(json.dumps({"direction": direction, **entry}, default=str))


def _format_body(data):
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=2)
    if isinstance(data, bytes):
        return f"<{len(data)} bytes>"
    return "" if data is None else str(data)


@click.command()
@click.argument("url")
@click.option("--method", "-X", default="GET", show_default=True, help="HTTP method")
@click.option(
    "--header", "-H", "headers", multiple=True, help="Request header as 'Name: value'"
)
@click.option("--data", "-d", help="Request body; parsed as JSON when possible")
@click.option(
    "--retry-time",
    type=float,
    help="Delay between attempts in milliseconds (0-60000)",
)
@click.option("--max-attempts", type=int, help="Total attempts including the first")
@click.option(
    "--retry-status",
    type=int,
    multiple=True,
    help="Retry only these status codes (default: anything but 200)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with 'client' and 'retry' sections",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def main(
    url,
    method,
    headers,
    data,
    retry_time,
    max_attempts,
    retry_status,
    config_file,
    verbose,
):
    """Send a request to URL, retrying it and printing one log entry per attempt."""
    configure_logging(debug_mode=verbose, structured=False)

    try:
        if config_file:
            settings = Settings.from_file(config_file)
        else:
            settings = Settings(client=ClientConfig(), retry=RetryOptions())
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    request_headers = _parse_headers(headers)

    body_kwargs = {}
    if data is not None:
        try:
            body_kwargs["json"] = json.loads(data)
        except ValueError:
            body_kwargs["data"] = data

    retry_kwargs = {}
    if retry_status:
        codes = set(retry_status)
        retry_kwargs["retry_logic"] = lambda response: response.status in codes

    try:
        client = create(
            settings.client,
            settings.retry.delay_ms if retry_time is None else retry_time,
            _echo_entry,
            max_attempts=settings.retry.max_attempts if max_attempts is None else max_attempts,
            **retry_kwargs,
        )
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    async def run():
        async with client:
            return await client.request(
                method, url, headers=request_headers, **body_kwargs
            )

    try:
        response = asyncio.run(run())
    except RetryExhaustedError as e:
        last_status = getattr(e.response, "status", None)
        raise click.ClickException(f"{e} (last status: {last_status})")
    except TransportError as e:
        raise click.ClickException(str(e))

    click.echo(f"Status: {response.status}")
    output = _format_body(response.data)
    if output:
        click.echo(output)


if __name__ == "__main__":
    main()
