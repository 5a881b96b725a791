"""
SecGate - API security regression gate
"""

__version__ = "1.0.0"
