"""UI layer -- Rich dashboard and progress subscriber."""

from .dashboard import (
    PhaseProgressDisplay,
    console,
    format_simple,
    print_connection_info,
    print_final_results,
    print_header,
)

__all__ = [
    "PhaseProgressDisplay",
    "console",
    "format_simple",
    "print_connection_info",
    "print_final_results",
    "print_header",
]
