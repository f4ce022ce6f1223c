"""Background workers for the premium entitlement engine"""
from .renewal_sweeper import RenewalSweeper, SweepAction

__all__ = ["RenewalSweeper", "SweepAction"]
