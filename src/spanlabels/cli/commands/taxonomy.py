"""
Taxonomy command: list the role ids the configured policy accepts.
"""

from __future__ import annotations

import click

from spanlabels.cli.base import format_option, settings_from_context
from spanlabels.cli.output import OutputFormatter
from spanlabels.core.policy import load_policy
from spanlabels.core.taxonomy import TAXONOMY_VERSION, family_of, is_attribute
from spanlabels.exceptions import PolicyLoadError


@click.command()
@click.option("--policy", "policy_file", type=click.Path(exists=True, dir_okay=False),
              help="Policy file (YAML or JSON); overrides configured policy")
@format_option()
@click.pass_context
def taxonomy(ctx: click.Context, policy_file: str | None, output_format: str):
    """List allowed roles with their family and word limit.

    Examples:
        spanlabels taxonomy
        spanlabels taxonomy --policy policy.yaml -f json
    """
    try:
        policy = load_policy(policy_file) if policy_file else settings_from_context(ctx).build_policy()
    except PolicyLoadError as e:
        raise click.ClickException(e.message) from e

    rows = []
    for role in sorted(policy.allowed_roles):
        family = family_of(role)
        limit = policy.word_limit_for(role)
        rows.append({
            "role": role,
            "family": family.value if family else "-",
            "kind": "attribute" if is_attribute(role) else "parent",
            "word_limit": "none" if limit is None else limit,
        })

    fmt = OutputFormatter(output_format)
    fmt.print_rows(rows, ["role", "family", "kind", "word_limit"])
    if output_format == "table":
        click.echo(f"\n{len(rows)} roles (taxonomy {TAXONOMY_VERSION})")
