"""
Simulation package - Main simulation engine and runners.

Contains:
- Application-side message source and delivery verifier
- Main simulator orchestrator
- Batch runner for parameter sweeps
"""

from .application import DeliveryVerifier, MessageSource
from .simulator import Simulator, SimulatorConfig
from .runner import BatchRunner, RunConfig, aggregate_results, run_single_simulation

__all__ = [
    'DeliveryVerifier',
    'MessageSource',
    'Simulator',
    'SimulatorConfig',
    'BatchRunner',
    'RunConfig',
    'aggregate_results',
    'run_single_simulation'
]
