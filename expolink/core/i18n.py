"""
Translation catalogs for user-facing notification text.

Lookup order: requested locale, FALLBACK_LOCALE, then the key itself
(so callers can detect a missing template by comparing to the key).
"""

from __future__ import annotations

from datetime import datetime

from babel.dates import format_datetime, get_timezone

from expolink.core.config import settings
from expolink.core.timeutil import as_utc

DATE_PATTERN = "MMM d 'at' h:mm a"

CATALOGS: dict[str, dict[str, str]] = {
    "en": {
        "new_meeting_title": "New Meeting Request 📅",
        "new_meeting_body": "{name} from {company} wants to meet you on {date}.",
        "new_meeting_body_no_company": "{name} wants to meet you on {date}.",
        "meeting_confirmed_title": "Meeting Confirmed ✅",
        "meeting_confirmed_body": "Your meeting on {date} has been confirmed.",
        "meeting_declined_title": "Meeting Declined",
        "meeting_declined_body": "Your meeting request for {date} was declined.",
        "meeting_cancelled_title": "Meeting Cancelled",
        "meeting_cancelled_body": "Your meeting on {date} has been cancelled.",
        "meeting_update_title": "Meeting Update",
        "meeting_update_body": "Your meeting on {date} is now {status}.",
        "meeting_reminder_title": "Upcoming Meeting ⏰",
        "meeting_reminder_body": "Reminder: you meet {name} on {date}.",
        "meeting_reminder_tomorrow_title": "Meeting Tomorrow",
        "meeting_reminder_tomorrow_body": "Don't forget: you meet {name} tomorrow, {date}.",
        "connection_request_title": "New Connection Request 👥",
        "connection_request_body": "{name} wants to connect with you.",
    },
    "fr": {
        "new_meeting_title": "Nouvelle demande de rendez-vous 📅",
        "new_meeting_body": "{name} de {company} souhaite vous rencontrer le {date}.",
        "new_meeting_body_no_company": "{name} souhaite vous rencontrer le {date}.",
        "meeting_confirmed_title": "Rendez-vous confirmé ✅",
        "meeting_confirmed_body": "Votre rendez-vous du {date} est confirmé.",
        "meeting_declined_title": "Rendez-vous refusé",
        "meeting_declined_body": "Votre demande de rendez-vous du {date} a été refusée.",
        "meeting_cancelled_title": "Rendez-vous annulé",
        "meeting_cancelled_body": "Votre rendez-vous du {date} a été annulé.",
        "meeting_update_title": "Mise à jour du rendez-vous",
        "meeting_update_body": "Votre rendez-vous du {date} est maintenant : {status}.",
        "meeting_reminder_title": "Rendez-vous imminent ⏰",
        "meeting_reminder_body": "Rappel : vous rencontrez {name} le {date}.",
        "meeting_reminder_tomorrow_title": "Rendez-vous demain",
        "meeting_reminder_tomorrow_body": "N'oubliez pas : vous rencontrez {name} demain, {date}.",
        "connection_request_title": "Nouvelle demande de connexion 👥",
        "connection_request_body": "{name} souhaite se connecter avec vous.",
    },
    "ar": {
        "new_meeting_title": "طلب اجتماع جديد 📅",
        "new_meeting_body": "{name} من {company} يرغب في لقائك يوم {date}.",
        "new_meeting_body_no_company": "{name} يرغب في لقائك يوم {date}.",
        "meeting_confirmed_title": "تم تأكيد الاجتماع ✅",
        "meeting_confirmed_body": "تم تأكيد اجتماعك يوم {date}.",
        "meeting_declined_title": "تم رفض الاجتماع",
        "meeting_declined_body": "تم رفض طلب اجتماعك يوم {date}.",
        "meeting_cancelled_title": "تم إلغاء الاجتماع",
        "meeting_cancelled_body": "تم إلغاء اجتماعك يوم {date}.",
        "meeting_update_title": "تحديث الاجتماع",
        "meeting_update_body": "اجتماعك يوم {date} أصبح الآن {status}.",
        "meeting_reminder_title": "اجتماع قريب ⏰",
        "meeting_reminder_body": "تذكير: لديك لقاء مع {name} يوم {date}.",
        "meeting_reminder_tomorrow_title": "اجتماع غداً",
        "meeting_reminder_tomorrow_body": "لا تنس: لديك لقاء مع {name} غداً، {date}.",
        "connection_request_title": "طلب تواصل جديد 👥",
        "connection_request_body": "{name} يرغب في التواصل معك.",
    },
}


def normalize_locale(locale: str | None) -> str:
    if locale in settings.SUPPORTED_LOCALES:
        return locale  # type: ignore[return-value]
    return settings.FALLBACK_LOCALE


def translate(key: str, locale: str | None = None, **params: object) -> str:
    """
    Resolve a catalog entry and substitute {placeholders}.

    Returns the key unchanged when no catalog defines it.
    """
    locale = normalize_locale(locale)
    template = CATALOGS.get(locale, {}).get(key)
    if template is None:
        template = CATALOGS[settings.FALLBACK_LOCALE].get(key)
    if template is None:
        return key
    return template.format(**params)


def format_meeting_date(value: datetime, locale: str | None = None) -> str:
    """Localized 'Oct 18 at 2:30 PM' in the application timezone."""
    return format_datetime(
        as_utc(value),
        DATE_PATTERN,
        tzinfo=get_timezone(settings.APP_TIMEZONE),
        locale=normalize_locale(locale),
    )
