"""
CLI command modules.
"""

# Pipeline commands
from spanlabels.cli.commands.validate import validate

# Evaluation commands
from spanlabels.cli.commands.evaluate import evaluate

# Taxonomy listing
from spanlabels.cli.commands.taxonomy import taxonomy

__all__ = [
    "validate",
    "evaluate",
    "taxonomy",
]
