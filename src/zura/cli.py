"""Zura CLI - sign in and query the CRM API from a terminal."""

import asyncio
import json
import logging

import click

from .client import ZuraClient
from .config import DEFAULT_CLI_SESSION_FILE, load_config
from .exceptions import ZuraError
from .resources import RESOURCES
from .session import FileSessionStore


def _make_client(ctx: click.Context) -> ZuraClient:
    opts = ctx.obj
    config = load_config()
    if opts["api_url"]:
        config = config.model_copy(update={"api_root": opts["api_url"]})
    if opts["use_cookies"] is not None:
        config = config.model_copy(update={"use_cookies": opts["use_cookies"]})
    session_file = opts["session_file"] or config.session_file or DEFAULT_CLI_SESSION_FILE
    store = FileSessionStore(session_file, mode=config.mode)
    return ZuraClient(config=config, store=store)


def _run(ctx: click.Context, action):
    """Run ``action(client)`` inside a client context, reporting errors and exiting 1."""

    async def main():
        async with _make_client(ctx) as client:
            return await action(client)

    try:
        return asyncio.run(main())
    except ZuraError as e:
        status = f" ({e.status_code})" if e.status_code else ""
        click.echo(f"Error: {e.message}{status}", err=True)
        raise SystemExit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logs")
@click.option("--api-url", default=None, help="Backend origin (default: $ZURA_API_URL)")
@click.option(
    "--session-file", default=None, help="Session file (default: $ZURA_SESSION_FILE, then ~/.zura/session.json)"
)
@click.option("--cookie-mode/--token-mode", "use_cookies", default=None,
              help="Cookie session or bearer token authentication")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, api_url, session_file, use_cookies):
    """Zura CRM command line client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s %(funcName)s() > %(message)s',
        datefmt='%Y/%m/%d %H:%M:%S',
    )
    ctx.obj = {"api_url": api_url, "session_file": session_file, "use_cookies": use_cookies}


@cli.command()
@click.option("--email", prompt=True, help="Account email")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
@click.pass_context
def signin(ctx: click.Context, email: str, password: str):
    """Sign in and remember the session."""
    identity = _run(ctx, lambda c: c.hydration.signin({"email": email, "password": password}))
    name = identity.profile.get("name") or email
    click.echo(f"Signed in as {name}" + (f" (org {identity.tenant_id})" if identity.tenant_id else ""))


@cli.command()
@click.option("--name", prompt=True, help="Full name")
@click.option("--email", prompt=True, help="Account email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Account password")
@click.option("--company", default=None, help="Organization name")
@click.pass_context
def signup(ctx: click.Context, name: str, email: str, password: str, company):
    """Create an account and remember the session."""
    payload = {"name": name, "email": email, "password": password}
    if company:
        payload["company"] = company
    identity = _run(ctx, lambda c: c.hydration.signup(payload))
    click.echo(f"Signed up as {identity.profile.get('name') or name}")


@cli.command()
@click.pass_context
def signout(ctx: click.Context):
    """Sign out and forget the session."""
    _run(ctx, lambda c: c.hydration.signout())
    click.echo("Signed out")


@cli.command()
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
@click.pass_context
def whoami(ctx: click.Context, output_format: str):
    """Show the signed-in user."""

    async def action(client: ZuraClient):
        await client.hydration.hydrate()
        return client.hydration.identity

    identity = _run(ctx, action)
    if identity is None:
        click.echo("Not signed in", err=True)
        raise SystemExit(1)
    if output_format == "json":
        click.echo(json.dumps(identity.model_dump(exclude_none=True), indent=2))
    else:
        user = identity.profile
        click.echo(f"{user.get('name') or user.get('email') or 'unknown'} <{user.get('email', '')}>")
        if identity.role:
            click.echo(f"role: {identity.role}")
        if identity.tenant_id:
            click.echo(f"org: {identity.tenant_id}")


@cli.command(name="list")
@click.argument("resource", type=click.Choice(sorted(RESOURCES)))
@click.option("--param", "-p", multiple=True, help="Query parameter as key=value (repeatable)")
@click.pass_context
def list_cmd(ctx: click.Context, resource: str, param: tuple[str, ...]):
    """List records of RESOURCE as JSON."""
    params: dict[str, list[str]] = {}
    for item in param:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{item}'", param_hint="--param")
        params.setdefault(key, []).append(value)

    records = _run(ctx, lambda c: getattr(c, resource).list(params))
    click.echo(json.dumps(records, indent=2))


if __name__ == "__main__":
    cli()
