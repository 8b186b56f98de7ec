"""Display labels and calendar colours for appointment statuses."""

from booking.models.appointment import AppointmentStatus

DEFAULT_STATUS_COLOR = "#1890ff"

APPOINTMENT_STATUS_COLORS: dict[AppointmentStatus, str] = {
    AppointmentStatus.IN_SERVICE: "#91e3ee",
    AppointmentStatus.CANCELLED: "#FF6B6B",
    AppointmentStatus.NO_SHOW: "#A19E9C",
    AppointmentStatus.CHECKED_IN: "#eaff8f",
    AppointmentStatus.CHECKED_OUT: "#e2efda",
    AppointmentStatus.PENDING_PAYMENT: "#2db7f5",
}

APPOINTMENT_STATUS_LABELS: dict[AppointmentStatus, str] = {
    AppointmentStatus.SCHEDULED: "Scheduled",
    AppointmentStatus.IN_SERVICE: "In Service",
    AppointmentStatus.CHECKED_IN: "Checked In",
    AppointmentStatus.CHECKED_OUT: "Checked Out",
    AppointmentStatus.CANCELLED: "Cancelled",
    AppointmentStatus.NO_SHOW: "No Show",
    AppointmentStatus.PENDING_PAYMENT: "Pending Payment",
}


def get_appointment_status_color(
    status: AppointmentStatus, default_color: str = DEFAULT_STATUS_COLOR
) -> str:
    """Calendar colour for an appointment status; scheduled uses ``default_color``."""
    if status == AppointmentStatus.SCHEDULED:
        return default_color
    return APPOINTMENT_STATUS_COLORS.get(status, "#91caff")


def get_appointment_status_label(status: AppointmentStatus | str) -> str:
    try:
        return APPOINTMENT_STATUS_LABELS[AppointmentStatus(status)]
    except ValueError:
        return str(status)
