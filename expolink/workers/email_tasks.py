"""
Email background tasks.

Password reset emails.
"""

from expolink.workers.celery_app import celery_app


@celery_app.task(name="expolink.workers.email_tasks.send_password_reset_email", bind=True, max_retries=3)
def send_password_reset_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    reset_token: str,
    frontend_url: str,
) -> dict[str, str]:
    """
    Send a password reset email via Resend.

    Args:
        to_email: Recipient email address.
        reset_token: Single-use reset token.
        frontend_url: Frontend base URL for constructing the reset link.

    Returns:
        Dict with status and message_id.
    """
    try:
        from urllib.parse import urlencode

        import resend

        from expolink.core.config import settings

        resend.api_key = settings.RESEND_API_KEY

        query = urlencode({"token": reset_token, "email": to_email})
        reset_url = f"{frontend_url}/reset-password?{query}"
        minutes = settings.PASSWORD_RESET_EXPIRE_SECONDS // 60

        params: resend.Emails.SendParams = {
            "from": settings.EMAIL_FROM,
            "to": [to_email],
            "subject": "Reset your ExpoLink password",
            "html": f"""
                <h2>Reset your password</h2>
                <p>You are receiving this email because we received a password
                reset request for your ExpoLink account.</p>
                <p>
                    <a href="{reset_url}"
                       style="background:#0a193c;color:#fff;padding:12px 24px;
                              border-radius:6px;text-decoration:none;display:inline-block;">
                        Reset Password
                    </a>
                </p>
                <p>This link expires in {minutes} minutes.</p>
                <p>If you did not request a password reset, no further action is required.</p>
            """,
        }

        response = resend.Emails.send(params)
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))
