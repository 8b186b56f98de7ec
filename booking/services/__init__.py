"""Services around the booking API (availability, appointments, reviews)."""
