"""
delivery-build — build, test and package orchestration for delivery-cli.
"""

__version__ = "0.1.0"
