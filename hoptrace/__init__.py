from ._config import MtrConfig
from ._display import Display, InteractiveDisplay, ReportDisplay, Screen
from ._dns import DnsCache, lookup_address, resolve_target, reverse_lookup
from ._exceptions import (
    ConfigurationError,
    HoptraceError,
    RawSocketPermissionError,
    ResolutionError,
)
from ._hops import HopTable
from ._icmp import Icmp, configure_logging, console, logger
from ._models import Arrived, Hop, Outcome, Relayed, Silent, Target
from ._mtr import Mtr, MtrResult, Phase, RunState, mtr
from ._probe import ProbeDriver, Prober
from ._render import TableRenderer
from ._stats import RunningStats

__all__ = [
    "Arrived",
    "ConfigurationError",
    "Display",
    "DnsCache",
    "Hop",
    "HopTable",
    "HoptraceError",
    "Icmp",
    "InteractiveDisplay",
    "Mtr",
    "MtrConfig",
    "MtrResult",
    "Outcome",
    "Phase",
    "ProbeDriver",
    "Prober",
    "RawSocketPermissionError",
    "Relayed",
    "ReportDisplay",
    "ResolutionError",
    "RunState",
    "RunningStats",
    "Screen",
    "Silent",
    "TableRenderer",
    "Target",
    "configure_logging",
    "console",
    "logger",
    "lookup_address",
    "mtr",
    "resolve_target",
    "reverse_lookup",
]
