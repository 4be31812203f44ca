"""
                Canteen Weekly Menu Ordering

Login-less same-day ordering against a rotating weekly menu, gated by
the restaurant's opening hours.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
