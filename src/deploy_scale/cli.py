# cli.py
import sys
import logging
from functools import partial
from typing import Optional, Sequence

import click

from deploy_scale.args import resolve_scaling_intent
from deploy_scale.client import PlatformClient
from deploy_scale.config.files import load_cli_config
from deploy_scale.config.settings import get_settings
from deploy_scale.errors import (
    ErrorCode,
    NotFoundError,
    RemoteError,
    UsageError,
    ValidationError,
    VerificationTimeoutError,
)
from deploy_scale.orchestrator import ScaleOrchestrator
from deploy_scale.output import Output, cmd
from deploy_scale.regions import normalize_regions
from deploy_scale.verify import ScaleVerifier

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_HELP = 2

HELP = f"""
  {click.style('deploy-scale scale', bold=True)} <url> <dc> [min] [max]

  {click.style('Options:', dim=True)}

    -h, --help                     Output usage information
    -A FILE, --local-config=FILE   Path to the local `now.json` file
    -Q DIR, --global-config=DIR    Path to the global `.now` directory
    -t TOKEN, --token=TOKEN        Login token
    -d, --debug                    Debug mode [off]
    -T, --team                     Set a custom team scope
    -n, --no-verify                Skip step of waiting until instance count meets given constraints
    --regions=LIST                 Regions for the `<min> [max]` form [all]

  {click.style('Examples:', dim=True)}

  - Enable your deployment in all datacenters (min: 0, max: auto)

    {click.style('$ deploy-scale scale my-deployment-123.now.sh all', fg='cyan')}

  - Enable your deployment in the SFO datacenter (min: 0, max: auto)

    {click.style('$ deploy-scale scale my-deployment-123.now.sh sfo', fg='cyan')}

  - Scale a deployment in all datacenters to 3 instances at all times (no sleep)

    {click.style('$ deploy-scale scale my-deployment-123.now.sh all 3', fg='cyan')}

  - Enable your deployment in all datacenters, with auto-scaling

    {click.style('$ deploy-scale scale my-deployment-123.now.sh all auto', fg='cyan')}
"""


def configure_logging(level: str, debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level, logging.INFO),
        format='%(levelname)s: %(message)s'
    )


@click.group(add_help_option=False, invoke_without_command=True)
@click.option('-h', '--help', 'show_help', is_flag=True, help='Output usage information')
@click.pass_context
def cli(ctx, show_help: bool):
    """Manage scaling rules of deployments"""
    # help exits 2 at every level, like `scale --help`
    if show_help or ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(EXIT_HELP)


@cli.command(add_help_option=False)
@click.argument('args', nargs=-1)
@click.option('-h', '--help', 'show_help', is_flag=True, help='Output usage information')
@click.option('-A', '--local-config', type=click.Path(dir_okay=False), default=None,
              help='Path to the local now.json file')
@click.option('-Q', '--global-config', type=click.Path(file_okay=False), default=None,
              help='Path to the global .now directory')
@click.option('-t', '--token', default=None, help='Login token')
@click.option('-d', '--debug', is_flag=True, help='Debug mode')
@click.option('-T', '--team', default=None, help='Set a custom team scope')
@click.option('-n', '--no-verify', is_flag=True,
              help='Skip waiting until instance counts meet the given constraints')
@click.option('--regions', default=None, help='Regions for the <min> [max] form')
@click.pass_context
def scale(ctx, args: Sequence[str], show_help: bool, local_config: Optional[str],
          global_config: Optional[str], token: Optional[str], debug: bool,
          team: Optional[str], no_verify: bool, regions: Optional[str]):
    """Set the min/max instance rules of a deployment per region"""
    if show_help:
        click.echo(HELP)
        ctx.exit(EXIT_HELP)

    settings = get_settings()
    configure_logging(settings.log_level, debug)
    output = Output(debug=debug)

    # `scale ls` has been deprecated
    if args and args[0] == 'ls':
        output.error(
            f"{cmd('deploy-scale scale ls')} has been deprecated. "
            f"Use {cmd('now ls')} and {cmd('now inspect <url>')}",
            'scale-ls'
        )
        ctx.exit(EXIT_FAILURE)

    try:
        intent = resolve_scaling_intent(
            args,
            regions_override=regions,
            normalize=partial(normalize_regions, table=settings.regions)
        )
    except UsageError as e:
        output.error(e.message)
        click.echo(HELP)
        ctx.exit(EXIT_FAILURE)
    except ValidationError as e:
        slug = 'deploy-invalid-dc' if e.code == ErrorCode.INVALID_REGION_ID else None
        output.error(e.message, slug)
        ctx.exit(EXIT_FAILURE)

    identifier = args[0]

    try:
        cli_config = load_cli_config(global_config or settings.global_config_dir, local_config)
    except UsageError as e:
        output.error(e.message)
        ctx.exit(EXIT_FAILURE)

    token = token or settings.token or cli_config.token
    team = team or settings.team or cli_config.team

    obj = ctx.obj or {}
    client = obj.get('client')
    owns_client = client is None
    if owns_client:
        if not token:
            output.error(f"Not logged in. Pass {cmd('--token')} or set SCALE_TOKEN")
            ctx.exit(EXIT_FAILURE)
        client = PlatformClient(
            settings.api_url,
            token,
            team=team,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries
        )

    verifier = None
    if not no_verify:
        verifier = ScaleVerifier(client, timeout=settings.verify_timeout,
                                 interval=settings.verify_interval)

    orchestrator = ScaleOrchestrator(client, output, verifier=verifier)
    try:
        orchestrator.run(identifier, intent)
    except (NotFoundError, ValidationError, VerificationTimeoutError) as e:
        output.error(e.message)
        ctx.exit(EXIT_FAILURE)
    finally:
        if owns_client:
            client.close()

    ctx.exit(EXIT_OK)


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    print(f"  API URL: {settings.api_url}")
    print(f"  Team: {settings.team or 'personal'}")
    print(f"  Token: {'set' if settings.token else 'not set'}")
    print(f"  Global Config Dir: {settings.global_config_dir}")
    print(f"  Request Timeout: {settings.request_timeout}s")
    print(f"  Max Retries: {settings.max_retries}")
    print(f"  Verify Timeout: {settings.verify_timeout}s")
    print(f"  Regions: {', '.join(settings.regions)}")
    print(f"  Log Level: {settings.log_level}")


def main(argv: Optional[Sequence[str]] = None, obj: Optional[dict] = None) -> int:
    """Run the CLI and translate outcomes into an exit code."""
    try:
        code = cli.main(args=list(argv) if argv is not None else None,
                        prog_name='deploy-scale', standalone_mode=False, obj=obj)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return EXIT_FAILURE
    except click.ClickException as e:
        e.show()
        return EXIT_FAILURE
    except RemoteError as e:
        logger.error(f"Remote call failed: {e}")
        Output().error(str(e))
        return EXIT_FAILURE
    return code or EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
