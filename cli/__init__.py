import click

from cli.submit_proposal import submit_proposal


@click.group()
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx):
    pass


# Governance proposal submission
cli.add_command(submit_proposal, "submit_proposal")
