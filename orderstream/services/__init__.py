"""
                        Services Module

Business logic services with the hybrid architecture pattern.
Each external dependency has a development and a production implementation.

Services:
    - orders: order store (in-memory / SQLAlchemy) and order operations
    - sms: customer text messages (mock / Twilio)
"""
