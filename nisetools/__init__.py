"""Simulation input parsing and Hamiltonian trajectory format translation for exciton spectroscopy."""

__version__ = "3.1.0"