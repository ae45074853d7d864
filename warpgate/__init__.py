"""
FTL Warp Gate
Fast-track release automation bridging Jira and Bamboo, including the
blue/green production cutover.
"""

__version__ = "0.1.0"
__author__ = "Warp Gate Team"
__license__ = "MIT"
