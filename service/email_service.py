"""
Outgoing mail. Every send is best effort: failures are logged and reported as `False`, never raised, so a broken
SMTP server cannot fail the request that triggered the mail.
"""

import logging
import smtplib
from html import escape
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import List, Optional

import config
from db.models import Booking, Infrastructure, User

logger = logging.getLogger(__name__)


def _slot_text(booking: Booking) -> str:
    return f"{booking.booking_date} {booking.start_time.strftime('%H:%M')} - {booking.end_time.strftime('%H:%M')}"


def _unsubscribe_footer(email: str) -> str:
    url = f'{config.FRONTEND_URL}/unsubscribe/{email}'
    return f"<p style='font-size:12px;color:#888'>Don't want these emails? <a href='{url}'>Unsubscribe</a></p>"


class EmailService:
    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        if not config.EMAIL_HOST:
            logger.info('EMAIL_HOST is not set, skipping "%s" to %s', subject, to_email)
            return False

        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = formataddr((config.EMAIL_FROM_NAME, config.EMAIL_FROM))
        msg['To'] = to_email
        msg.attach(MIMEText(html_body, 'html'))

        try:
            with smtplib.SMTP(config.EMAIL_HOST, config.EMAIL_PORT, timeout=10) as server:
                if config.EMAIL_USE_TLS:
                    server.starttls()
                if config.EMAIL_USERNAME and config.EMAIL_PASSWORD:
                    server.login(config.EMAIL_USERNAME, config.EMAIL_PASSWORD)
                server.sendmail(config.EMAIL_FROM, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError):
            logger.exception('Failed to send "%s" to %s', subject, to_email)
            return False

        logger.info('Sent "%s" to %s', subject, to_email)
        return True

    def send_verification_email(self, user: User, token: str) -> bool:
        url = f'{config.FRONTEND_URL}/verify-email/{token}'
        html = f"""
        <div style='font-family:Arial,sans-serif'>
            <h2>Welcome, {escape(user.name)}</h2>
            <p>Please confirm your email address to activate your account.</p>
            <p><a href='{url}'>Verify email</a></p>
            <p>The link expires in {config.VERIFICATION_TOKEN_EXPIRY_HOURS} hours.</p>
        </div>
        """
        return self.send(user.email, 'Verify Your Email Address', html)

    def send_password_reset_email(self, user: User, token: str) -> bool:
        url = f'{config.FRONTEND_URL}/reset-password/{token}'
        html = f"""
        <div style='font-family:Arial,sans-serif'>
            <h2>Password reset</h2>
            <p>Hello {escape(user.name)}, a password reset was requested for your account.</p>
            <p><a href='{url}'>Reset password</a></p>
            <p>The link expires in {config.PASSWORD_RESET_EXPIRY_HOURS} hour(s). Ignore this mail if it wasn't you.</p>
        </div>
        """
        return self.send(user.email, 'Reset Your Password', html)

    def send_guest_booking_confirmation(self, name: str, email: str, token: str) -> bool:
        url = f'{config.FRONTEND_URL}/guest-confirm/{token}'
        html = f"""
        <div style='font-family:Arial,sans-serif'>
            <h2>Confirm your booking</h2>
            <p>Hello {escape(name)}, please confirm your booking request by following the link below.</p>
            <p><a href='{url}'>Confirm booking</a></p>
        </div>
        """
        return self.send(email, 'Confirm Your Booking Request', html)

    def send_booking_notification_to_managers(self, booking: Booking, infrastructure: Infrastructure,
                                              managers: List[User], action_token: str,
                                              requester: Optional[User] = None) -> int:
        """
        Mails every manager that has notifications enabled. Returns how many mails went out.
        """
        approve_url = f'{config.FRONTEND_URL}/email-action/approve/{action_token}'
        reject_url = f'{config.FRONTEND_URL}/email-action/reject/{action_token}'
        requester_name = requester.name if requester else booking.user_email

        sent = 0
        for manager in managers:
            if not manager.email_notifications:
                continue

            html = f"""
            <div style='font-family:Arial,sans-serif'>
                <h2>New booking request for {escape(infrastructure.name)}</h2>
                <p><strong>Requested by:</strong> {escape(requester_name)} ({escape(booking.user_email)})</p>
                <p><strong>When:</strong> {_slot_text(booking)}</p>
                <p><strong>Purpose:</strong> {escape(booking.purpose or '-')}</p>
                <p><a href='{approve_url}'>Approve</a> | <a href='{reject_url}'>Reject</a></p>
                {_unsubscribe_footer(manager.email)}
            </div>
            """
            if self.send(manager.email, f'New Booking Request for {infrastructure.name}', html):
                sent += 1

        return sent

    def send_booking_status_update(self, booking: Booking, infrastructure: Infrastructure, status: str,
                                   user: Optional[User]) -> bool:
        if user is None or not user.email_notifications:
            return False

        html = f"""
        <div style='font-family:Arial,sans-serif'>
            <h2>Your booking was {status}</h2>
            <p>Hello {escape(user.name)}, your booking for <strong>{escape(infrastructure.name)}</strong>
            on {_slot_text(booking)} is now <strong>{status}</strong>.</p>
            {_unsubscribe_footer(user.email)}
        </div>
        """
        return self.send(user.email, f'Booking {status.capitalize()}: {infrastructure.name}', html)
