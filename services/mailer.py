"""
Mail delivery for the auth service.

- TemplateRenderer: Jinja2 templates under services/templates
  (<name>.html, optional <name>.txt)
- SMTPMailer: sends rendered messages over SMTP (STARTTLS + login optional)
- ConsoleMailer: renders and logs instead of sending (dev/test)
"""
from __future__ import annotations

import logging
import os
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Dict, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from services.errors import MailDeliveryError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

EMAIL_VERIFICATION_SUBJECT = "Email Verification"
EMAIL_VERIFICATION_TEMPLATE = "send_confirm_email_code"


class TemplateRenderer:
    def __init__(self, templates_dir: str = TEMPLATES_DIR, default_context: Optional[Dict[str, Any]] = None):
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(["html"]),
        )
        self.default_context = dict(default_context or {})

    def set_default_context(self, key: str, value: Any):
        self.default_context[key] = value

    def render(self, template_name: str, data: Dict[str, Any]) -> Tuple[str, Optional[str]]:
        """Return (html, text); text is None when there is no .txt variant."""
        ctx = {**self.default_context, **(data or {})}
        html = self.env.get_template(f"{template_name}.html").render(**ctx)
        try:
            text = self.env.get_template(f"{template_name}.txt").render(**ctx)
        except TemplateNotFound:
            text = None
        return html, text


class BaseMailer:
    def __init__(self, renderer: TemplateRenderer, from_addr: str, from_name: str | None = None):
        self.renderer = renderer
        self.from_addr = from_addr
        self.from_name = from_name

    def build_message(self, to: str, subject: str, template_name: str, data: Dict[str, Any]) -> EmailMessage:
        html, text = self.renderer.render(template_name, data)
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_addr)) if self.from_name else self.from_addr
        msg["To"] = to
        msg.set_content(text or "This message requires an HTML-capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def send_templated(self, to: str, subject: str, template_name: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError


class SMTPMailer(BaseMailer):
    def __init__(
        self,
        renderer: TemplateRenderer,
        host: str,
        port: int,
        from_addr: str,
        from_name: str | None = None,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        super().__init__(renderer, from_addr, from_name)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send_templated(self, to, subject, template_name, data):
        msg = self.build_message(to, subject, template_name, data)
        logger.debug("Sending email to=%s subject=%r template=%s", to, subject, template_name)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery failed to=%s host=%s: %s", to, self.host, exc)
            raise MailDeliveryError() from exc
        logger.info("Email sent to=%s template=%s", to, template_name)


class ConsoleMailer(BaseMailer):
    """Logs the rendered message instead of delivering it."""

    def __init__(self, renderer, from_addr, from_name=None):
        super().__init__(renderer, from_addr, from_name)
        self.outbox = []

    def send_templated(self, to, subject, template_name, data):
        msg = self.build_message(to, subject, template_name, data)
        self.outbox.append(msg)
        logger.info("Console mailer: to=%s subject=%r template=%s", to, subject, template_name)


def build_mailer(config) -> BaseMailer:
    """Pick a mailer from a Flask config mapping (MAIL_BACKEND)."""
    renderer = TemplateRenderer(default_context={"app_name": config.get("APP_NAME", "Auth Scaffold")})
    backend = (config.get("MAIL_BACKEND") or "console").lower()
    from_addr = config.get("MAIL_FROM_ADDR", "no-reply@localhost")
    from_name = config.get("MAIL_FROM_NAME")
    if backend == "smtp":
        return SMTPMailer(
            renderer,
            host=config["MAIL_SERVER"],
            port=int(config["MAIL_PORT"]),
            from_addr=from_addr,
            from_name=from_name,
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_tls=config.get("MAIL_USE_TLS", True),
            timeout=float(config.get("MAIL_TIMEOUT", 10)),
        )
    if backend == "console":
        return ConsoleMailer(renderer, from_addr, from_name)
    raise ValueError(f"Unknown MAIL_BACKEND: {backend}")
