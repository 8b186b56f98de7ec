"""
Utility functions for the booking client.

- formatting: time unit, money and wire-format helpers
- labels: display labels and colours for appointment statuses
"""
