"""
Meeting notifications: new request, status change, reminder.
"""

from __future__ import annotations

from typing import Any

from expolink.core.i18n import format_meeting_date, translate
from expolink.models.app_notification import NotificationType
from expolink.models.appointment import Appointment, AppointmentStatus
from expolink.models.user import User
from expolink.notifications.base import CLICK_ACTION, Notification

MEETING_SCREEN = "/b2b_detail"


def _meeting_data(appointment: Appointment) -> dict[str, Any]:
    return {
        "screen": MEETING_SCREEN,
        "arg": str(appointment.id),
        "click_action": CLICK_ACTION,
    }


class NewMeetingRequest(Notification):
    """Sent to the target when someone books a meeting with them."""

    def __init__(self, appointment: Appointment, booker: User) -> None:
        self.appointment = appointment
        self.booker = booker

    def to_app(self, notifiable: User) -> dict[str, Any]:
        locale = notifiable.locale
        date = format_meeting_date(self.appointment.scheduled_at, locale)
        company = self.booker.display_company_name
        if company:
            body = translate(
                "new_meeting_body", locale, name=self.booker.full_name, company=company, date=date
            )
        else:
            body = translate("new_meeting_body_no_company", locale, name=self.booker.full_name, date=date)

        return {
            "title": translate("new_meeting_title", locale),
            "body": body,
            "type": NotificationType.info.value,
            "data": _meeting_data(self.appointment),
        }


class MeetingStatusUpdated(Notification):
    """Sent to the other participant when a meeting changes status."""

    def __init__(self, appointment: Appointment, status: AppointmentStatus | str) -> None:
        self.appointment = appointment
        self.status = status.value if isinstance(status, AppointmentStatus) else str(status)

    @property
    def notification_type(self) -> NotificationType:
        if self.status == AppointmentStatus.confirmed.value:
            return NotificationType.success
        return NotificationType.alert

    def to_app(self, notifiable: User) -> dict[str, Any]:
        locale = notifiable.locale
        date = format_meeting_date(self.appointment.scheduled_at, locale)

        title_key = f"meeting_{self.status}_title"
        body_key = f"meeting_{self.status}_body"
        title = translate(title_key, locale, date=date)
        body = translate(body_key, locale, date=date)

        # No template for this status: use the generic one
        if title == title_key:
            title = translate("meeting_update_title", locale)
        if body == body_key:
            body = translate("meeting_update_body", locale, date=date, status=self.status)

        return {
            "title": title,
            "body": body,
            "type": self.notification_type.value,
            "data": _meeting_data(self.appointment),
        }


class AppointmentReminder(Notification):
    """Emitted by the reminder job for each participant of an upcoming meeting."""

    HOUR = "hour"
    DAY = "day"

    def __init__(self, appointment: Appointment, other_party: User, window: str = HOUR) -> None:
        self.appointment = appointment
        self.other_party = other_party
        self.window = window

    def to_app(self, notifiable: User) -> dict[str, Any]:
        locale = notifiable.locale
        date = format_meeting_date(self.appointment.scheduled_at, locale)
        prefix = "meeting_reminder_tomorrow" if self.window == self.DAY else "meeting_reminder"
        return {
            "title": translate(f"{prefix}_title", locale),
            "body": translate(f"{prefix}_body", locale, name=self.other_party.full_name, date=date),
            "type": NotificationType.info.value,
            "data": _meeting_data(self.appointment),
        }
