"""ZeptoMail implementation of Mailer.

Mail goes to the primary address with verified secondary addresses in cc.
Templates live in templates/emails and are rendered with jinja2; every send
returns False instead of raising so a mail outage never fails a request.
"""

import os
from typing import Optional
from urllib.parse import urlencode

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from schemas.models.account import AccountEmail
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.com/v1.1/email"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


def _recipients(emails: list[AccountEmail]) -> tuple[Optional[str], list[str]]:
    primary = next((e.email for e in emails if e.is_primary), None)
    if primary is None and emails:
        primary = emails[0].email
    cc = [e.email for e in emails if e.is_verified and e.email != primary]
    return primary, cc


class ZeptoMailMailer:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_url: str = "https://accounts.firefox.com",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_url = app_url
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    @property
    def _authorization(self) -> str:
        key = self._settings.zepto_api_token
        if key.startswith("Zoho-enczapikey "):
            return key
        return f"Zoho-enczapikey {key}"

    def _message(
        self,
        to_email: str,
        cc: list[str],
        subject: str,
        html_body: str,
        text_body: Optional[str],
        accept_language: Optional[str],
    ) -> dict:
        message: dict = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [{"email_address": {"address": to_email}}],
            "subject": subject,
            "htmlbody": html_body,
        }
        if cc:
            message["cc"] = [{"email_address": {"address": addr}} for addr in cc]
        if text_body:
            message["textbody"] = text_body
        if accept_language:
            message["mime_headers"] = {"Content-Language": accept_language}
        return message

    async def _send(
        self,
        emails: list[AccountEmail],
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
        accept_language: Optional[str] = None,
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("mail_not_sent", subject=subject, reason="token_not_configured")
            return False

        to_email, cc = _recipients(emails)
        if to_email is None:
            log.error("mail_not_sent", subject=subject, reason="no_recipient")
            return False

        message = self._message(
            to_email, cc, subject, html_body, text_body, accept_language
        )
        try:
            response = await self._http.post(
                _ZEPTO_API_URL,
                json=message,
                headers={
                    "Authorization": self._authorization,
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            log.error(
                "mail_transport_error",
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if response.status_code not in (200, 201, 202):
            log.error(
                "mail_rejected",
                subject=subject,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False
        log.info("mail_sent", subject=subject, cc_count=len(cc))
        return True

    async def send_recovery_email(
        self,
        emails: list[AccountEmail],
        *,
        token: str,
        code: str,
        email: str,
        service: Optional[str] = None,
        redirect_to: Optional[str] = None,
        resume: Optional[str] = None,
        accept_language: Optional[str] = None,
    ) -> bool:
        query = {"token": token, "code": code, "email": email}
        for key, value in (
            ("service", service),
            ("redirectTo", redirect_to),
            ("resume", resume),
        ):
            if value:
                query[key] = value
        link = f"{self._app_url}/complete_reset_password?{urlencode(query)}"

        subject = "Reset your password"
        html_body = self._jinja.get_template("recovery.html").render(
            link=link, code=code, email=email, app_url=self._app_url
        )
        text_body = (
            "Reset your password\n\n"
            f"Someone requested a password reset for {email}.\n\n"
            f"Reset it here: {link}\n\n"
            "If you did not make this request, you can ignore this email."
        )
        return await self._send(emails, subject, html_body, text_body, accept_language)

    async def send_password_reset_email(
        self,
        emails: list[AccountEmail],
        *,
        accept_language: Optional[str] = None,
    ) -> bool:
        subject = "Your password has been reset"
        html_body = self._jinja.get_template("password_reset.html").render(
            app_url=self._app_url
        )
        text_body = (
            "Your password has been reset.\n\n"
            "If you did not reset it, change your password right away: "
            f"{self._app_url}/reset_password"
        )
        return await self._send(emails, subject, html_body, text_body, accept_language)

    async def send_password_changed_email(
        self,
        emails: list[AccountEmail],
        *,
        ip: Optional[str] = None,
        accept_language: Optional[str] = None,
    ) -> bool:
        subject = "Your password has been changed"
        html_body = self._jinja.get_template("password_changed.html").render(
            ip=ip, app_url=self._app_url
        )
        text_body = (
            "Your password was changed"
            f"{f' from {ip}' if ip else ''}.\n\n"
            "If you did not change it, reset your password right away: "
            f"{self._app_url}/reset_password"
        )
        return await self._send(emails, subject, html_body, text_body, accept_language)
