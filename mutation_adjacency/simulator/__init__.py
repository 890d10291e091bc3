"""Simulation core utilities (sampling, engine, visualisation).

The sub-modules are intentionally kept lightweight to ease unit testing and to
allow independent reuse by estimators inside worker processes.
"""
