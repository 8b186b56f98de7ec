"""
Online booking client for small service businesses.

The wizard session (``booking.session.BookingSession``) owns the selection
aggregate and the step machine; everything talking to the backend goes through
``shared.booking_api_client.BookingAPIClient``.
"""
