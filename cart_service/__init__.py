"""
Storefront Cart Service

Server-held internal cart for a hosted-platform storefront. Reconciles
platform-native and externally sourced items and compiles them into
platform checkout lines.
"""

__version__ = "1.0.0"
