"""TeamDash - staffing lifecycle and project kickoff engine.

This package matches staffing requirements to qualified candidates, drives
each resource assignment through its booking lifecycle, derives project
status from assignment state, and orchestrates project kickoff.
"""

__version__ = "0.1.0"
