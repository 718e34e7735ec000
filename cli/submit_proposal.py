import asyncio
import sys
from typing import List, Optional, Tuple

import click
from pydantic import ValidationError

from config.configs import configs, get_env
from constants.constants import EXIT_FAILURE, EXIT_USAGE, PRIVATE_KEY_ENV
from governance.call_generators import create_call_generator, format_proposal_types
from governance.exceptions import GovernanceError, SigningKeyError, UnknownProposalTypeError, UsageError
from governance.jobs.submit_proposal_job import SubmitProposalJob
from governance.keyring import load_evm_keypair
from governance.models import ProposalConfig
from utils.logger_utils import configure_logging, get_logger
from utils.signal_utils import configure_signals

logger = get_logger("Submit Proposal")


class SubmitProposalCommand(click.Command):
    """Reports argument parsing failures with the usage exit code."""

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise


@click.command(cls=SubmitProposalCommand, context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("node_endpoint", type=str)
@click.argument("proposal_type", type=str)
@click.argument("proposal_args", nargs=-1, type=str)
@click.option(
    "--tech-comm-threshold",
    default=configs.governance.tech_comm_threshold,
    show_default=True,
    type=int,
    help="Number of technical committee members required to approve the whitelist motion.",
)
@click.option(
    "--referendum-delay",
    default=configs.governance.referendum_delay,
    show_default=True,
    type=int,
    help="Blocks after approval before the referendum call is enacted.",
)
@click.option(
    "--proxy-address",
    default=configs.governance.proxy_address,
    show_default=True,
    type=str,
    help="Account the signing key acts for through its Governance proxy.",
)
@click.option("--log-file", default=None, show_default=True, type=str, help="Path to the log file.")
def submit_proposal(
    node_endpoint: str,
    proposal_type: str,
    proposal_args: Tuple[str, ...],
    tech_comm_threshold: int,
    referendum_delay: int,
    proxy_address: str,
    log_file: Optional[str] = None,
):
    """Builds a whitelisted governance proposal and submits it through the Governance proxy.

    \b
    NODE_ENDPOINT   websocket URI of the node, e.g. wss://rpc.example.com
    PROPOSAL_TYPE   one of: runtime-upgrade <code-uri>, any <call-data>
    """
    configure_logging(log_file, configs.app.log_level)
    configure_signals()

    try:
        call_generator = create_call_generator(proposal_type, proposal_args)
    except UnknownProposalTypeError:
        _print_usage()
        sys.exit(EXIT_USAGE)
    except UsageError as e:
        logger.error(f"error: {e}")
        sys.exit(EXIT_USAGE)

    try:
        proposal_config = ProposalConfig(
            tech_comm_threshold=tech_comm_threshold,
            referendum_delay=referendum_delay,
            proxy_address=proxy_address,
        )
        keypair = load_evm_keypair(_read_private_key())

        logger.info(f"Processing governance proposal for: {proposal_type}")

        job = SubmitProposalJob(
            node_endpoint=node_endpoint,
            keypair=keypair,
            call_generator=call_generator,
            proposal_config=proposal_config,
        )
        asyncio.run(job.run())
    except ValidationError as e:
        logger.error(f"error: invalid proposal configuration: {e}")
        sys.exit(EXIT_USAGE)
    except UsageError as e:
        logger.error(f"error: {e}")
        sys.exit(EXIT_USAGE)
    except GovernanceError as e:
        logger.error(f"error: {e}")
        sys.exit(EXIT_FAILURE)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        logger.exception("An unhandled error occurred while submitting the proposal:")
        raise e

    logger.info("process completed successfully")


def _read_private_key() -> str:
    private_key = get_env(PRIVATE_KEY_ENV)
    if not private_key:
        raise SigningKeyError(f"missing {PRIVATE_KEY_ENV} environment variable")
    return private_key


def _print_usage() -> None:
    click.echo("unknown proposal type. Available proposal types:")
    for line in format_proposal_types():
        click.echo(line)
    click.echo("")
    click.echo("usage: python run.py submit_proposal <wss-uri> <proposal-type> <proposal-arg>")
