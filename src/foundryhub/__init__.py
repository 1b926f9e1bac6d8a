"""foundryhub - single-node supervisor for containerized Foundry VTT instances."""

__version__ = "0.1.0"
