"""
Portfolio Gateway - A small FastAPI service in front of the Kite Connect API.

Handles the broker login flow, summarizes holdings, serves quotes and watches
symbols for price threshold breaches.
"""

__version__ = "1.0.0"
