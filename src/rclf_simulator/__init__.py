"""
RCLF Simulator
==============

Fluidized-bed fluoride crystallization process simulator.

License: MIT
"""

__version__ = "1.0.0"
