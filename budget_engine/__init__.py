"""
Budget Engine - Source Package

The aggregation and budget-allocation engine behind a personal-finance
dashboard.

DESIGN PRINCIPLES:
1. Snapshots in, snapshots out (no hidden state)
2. Never mutate caller data
3. Dangling references degrade, they never crash
4. Failures are returned, not thrown, where the caller decides messaging
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Engine Team"
