from launchpad_app.services.curve_table import compute_curve_table, graduation_supply
from launchpad_app.services.factory import LaunchFactory
from launchpad_app.services.launch import Launch, TradeResult
from launchpad_app.services.simulation import run_launch_simulation

__all__ = [
    "compute_curve_table",
    "graduation_supply",
    "Launch",
    "LaunchFactory",
    "TradeResult",
    "run_launch_simulation",
]
