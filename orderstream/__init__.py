"""
                Order Stream

Restaurant ordering backend with real-time order status notifications
pushed to storefront, kitchen display and admin clients over
Server-Sent Events.
"""

__version__ = "1.0.0"
