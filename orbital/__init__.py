"""
Orbital: multi-asset stablecoin AMM with a concentrated swap curve
"""

__version__ = "0.1.0"
