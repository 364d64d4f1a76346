"""
                Bistro Boss Server

Backend for a restaurant ordering platform: users and roles, menu
catalog, reviews, carts, Stripe checkout and admin analytics on MongoDB.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
