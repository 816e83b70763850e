"""
Simulation engine: projects a baseline migration trajectory under a
four-lever budget allocation.

Modules
-------
engine : validate_allocation() + total_reduction() + budget_breakdown() +
         simulate(). Pure functions; all constants from SimulationConfig.
"""
