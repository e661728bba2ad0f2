"""seqgen terminal UI."""

from seqgen.ui.app import SequenceApp, run_app
from seqgen.ui.result_modal import ResultModal

__all__ = [
    "ResultModal",
    "SequenceApp",
    "run_app",
]
