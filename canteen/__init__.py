"""
                Tasty Canteen

Food-ordering storefront backend: menu browsing, special offers and
combos, a per-session cart, checkout and order history on top of a
hosted record store and identity service.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
