"""
spanlabels CLI module.

Provides output formatting and input loading for the command modules.
"""

from spanlabels.cli.output import OutputFormatter
from spanlabels.cli.utils import collect_files, load_span_list, load_validation_input

__all__ = [
    "OutputFormatter",
    "collect_files",
    "load_span_list",
    "load_validation_input",
]
