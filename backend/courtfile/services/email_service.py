from __future__ import annotations

from datetime import date, datetime
from html import escape
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import httpx

from courtfile.core.config import settings
from courtfile.core.logger import logger
from courtfile.utils.helpers import format_currency

Recipient = Union[str, Tuple[str, Optional[str]], Dict[str, str]]

CASE_STATUS_COLORS = {
    "pending": "#FFC107",
    "approved": "#4CAF50",
    "rejected": "#F44336",
    "inProgress": "#2196F3",
    "completed": "#4CAF50",
    "closed": "#9E9E9E",
    "draft": "#9E9E9E",
}

HEARING_STATUS_COLORS = {
    "scheduled": "#4CAF50",
    "postponed": "#FFC107",
    "closed": "#9E9E9E",
    "completed": "#2196F3",
    "cancelled": "#F44336",
}

HEARING_NOTIFICATION_TYPES = frozenset(HEARING_STATUS_COLORS)

EVIDENCE_STATUS_COLORS = {"approved": "#4CAF50", "rejected": "#F44336"}


def _badge(label: str, color: str) -> str:
    return (
        f'<span style="background-color: {color}; color: white; padding: 3px 8px; '
        f'border-radius: 3px;">{escape(label)}</span>'
    )


def _details(rows: Sequence[Tuple[str, str]], raw_last: bool = False) -> Tuple[str, str]:
    """Render a label/value block as (html, text)."""
    html_rows = []
    for i, (label, value) in enumerate(rows):
        shown = value if (raw_last and i == len(rows) - 1) else escape(str(value))
        html_rows.append(f"<p><strong>{escape(label)}:</strong> {shown}</p>")
    html = (
        '<div style="border: 1px solid #ddd; padding: 15px; border-radius: 5px; '
        'margin: 20px 0; background-color: #f9f9f9;">' + "".join(html_rows) + "</div>"
    )
    text = "\n".join(f"{label}: {value}" for label, value in rows)
    return html, text


def _layout(heading: str, paragraphs: Iterable[str], details_html: str = "") -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"<h2>{escape(heading)}</h2>{body}{details_html}"
        f"<p>Thank you for using our {escape(settings.APP_NAME)}.</p></div>"
    )


def _fmt_date(value: Union[date, datetime, str, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime("%A, %B %d, %Y")
    return str(value)


class EmailService:
    """Transactional email with a provider toggle (dev logs, brevo posts)."""

    def __init__(self, provider: Optional[str] = None) -> None:
        self.provider = (provider or settings.EMAIL_PROVIDER or "dev").strip().lower()

    @staticmethod
    def _normalize(recipients: Iterable[Recipient]) -> List[Dict[str, str]]:
        out = []
        for r in recipients:
            if isinstance(r, dict):
                email, name = r.get("email"), r.get("name")
            elif isinstance(r, tuple):
                email, name = r
            else:
                email, name = r, None
            if not email:
                continue
            entry = {"email": email.strip()}
            if name:
                entry["name"] = name
            out.append(entry)
        return out

    def _deliver(self, to: List[Dict[str, str]], subject: str, html: str, text: str) -> None:
        provider = self.provider
        if provider == "dev":
            logger.info("[DEV EMAIL] to=%s subject=%s", ",".join(r["email"] for r in to), subject)
            return
        if provider == "brevo":
            api_key = (settings.BREVO_API_KEY or "").strip()
            if not api_key:
                raise ValueError("Brevo email config missing (BREVO_API_KEY)")
            payload = {
                "sender": {"name": settings.EMAIL_SENDER_NAME, "email": settings.EMAIL_SENDER},
                "to": to,
                "subject": subject,
                "htmlContent": html,
                "textContent": text,
            }
            headers = {"api-key": api_key, "Content-Type": "application/json", "Accept": "application/json"}
            with httpx.Client(timeout=20.0) as client:
                resp = client.post(settings.BREVO_API_URL, json=payload, headers=headers)
                if resp.status_code >= 400:
                    raise ValueError(f"Brevo email failed: {resp.status_code} {resp.text[:200]}")
            return
        raise ValueError(f"Unsupported EMAIL_PROVIDER: {provider}")

    def send_email(
        self,
        to: Iterable[Recipient],
        subject: str,
        html: str,
        text: str = "",
    ) -> bool:
        """Send one message. Never raises; returns False on any failure."""
        recipients = self._normalize(to)
        if not recipients:
            logger.warning("Email '%s' skipped: no recipients", subject)
            return False
        try:
            self._deliver(recipients, subject, html, text)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to send email '%s': %s", subject, e)
            return False
        logger.info("Email '%s' sent to %d recipient(s)", subject, len(recipients))
        return True

    # ── Templates ─────────────────────────────────────────────────────────────

    def send_case_status_email(
        self, user_email: str, user_name: str, case_number: str, case_title: str, new_status: str
    ) -> bool:
        color = CASE_STATUS_COLORS.get(new_status, "#9E9E9E")
        details_html, details_text = _details(
            [("Case Number", case_number), ("Case Title", case_title), ("New Status", _badge(new_status, color))],
            raw_last=True,
        )
        details_text = details_text.rsplit("\n", 1)[0] + f"\nNew Status: {new_status}"
        html = _layout(
            "Case Status Update",
            [f"Dear {escape(user_name)},", "Your case has been updated."],
            details_html,
        )
        text = (
            f"Case Status Update\n\nDear {user_name},\n\nYour case has been updated.\n\n{details_text}\n\n"
            "You can log in to your account to view more details about this case update."
        )
        return self.send_email([(user_email, user_name)], f"Case Status Update: {case_number}", html, text)

    def send_welcome_email(self, user_email: str, user_name: str, verification_token: Optional[str] = None) -> bool:
        paragraphs = [
            f"Dear {escape(user_name)},",
            "Thank you for registering. You can now file cases, upload evidence and track hearings online.",
        ]
        text = f"Welcome to {settings.APP_NAME}\n\nDear {user_name},\n\n{paragraphs[1]}"
        if verification_token:
            link = f"{settings.PUBLIC_BASE_URL}/api/v1/auth/verify-email?token={verification_token}"
            paragraphs.append(f'Please verify your email address: <a href="{escape(link)}">{escape(link)}</a>')
            text += f"\n\nPlease verify your email address: {link}"
        html = _layout(f"Welcome to {settings.APP_NAME}", paragraphs)
        return self.send_email([(user_email, user_name)], f"Welcome to {settings.APP_NAME}", html, text)

    def send_verification_email(self, user_email: str, user_name: str, token: str) -> bool:
        link = f"{settings.PUBLIC_BASE_URL}/api/v1/auth/verify-email?token={token}"
        html = _layout(
            "Verify your email address",
            [
                f"Dear {escape(user_name)},",
                f'Please confirm your email address by opening this link: <a href="{escape(link)}">{escape(link)}</a>',
                f"The link expires in {settings.VERIFICATION_TOKEN_EXPIRE_HOURS} hours.",
            ],
        )
        text = (
            f"Dear {user_name},\n\nPlease confirm your email address: {link}\n"
            f"The link expires in {settings.VERIFICATION_TOKEN_EXPIRE_HOURS} hours."
        )
        return self.send_email([(user_email, user_name)], "Verify your email address", html, text)

    def send_admin_notification_email(
        self, recipients: Iterable[Recipient], subject: str, notification_type: str, data: Dict[str, str]
    ) -> bool:
        """Admin alerts: new_user, new_case, system_alert, summary."""
        if notification_type == "new_user":
            intro = "A new user has registered."
            rows = [("Name", data.get("name", "")), ("Email", data.get("email", "")),
                    ("Registered", data.get("registered_at", ""))]
        elif notification_type == "new_case":
            intro = "A new case has been filed and is awaiting review."
            rows = [("Case Number", data.get("case_number", "")), ("Case Title", data.get("case_title", "")),
                    ("Case Type", data.get("case_type", "")), ("Filed By", data.get("filed_by", ""))]
        elif notification_type == "summary":
            intro = f"Activity summary for {data.get('period', '')}."
            rows = [(k.replace("_", " ").title(), v) for k, v in data.items() if k != "period"]
        else:
            intro = data.get("message", "System alert")
            rows = [(k.replace("_", " ").title(), v) for k, v in data.items() if k != "message"]
        details_html, details_text = _details(rows)
        footer = f"You're receiving this email because you're an administrator of the {settings.APP_NAME}."
        html = _layout(subject, [escape(intro)], details_html + f"<p>{escape(footer)}</p>")
        text = f"{subject}\n\n{intro}\n\n{details_text}\n\n{footer}"
        return self.send_email(recipients, subject, html, text)

    def send_hearing_notification_email(
        self,
        user_email: str,
        user_name: str,
        case_number: str,
        case_title: str,
        hearing_date,
        hearing_time: str,
        location: str,
        hearing_status: str,
        previous_date=None,
        reason: Optional[str] = None,
    ) -> bool:
        if hearing_status not in HEARING_NOTIFICATION_TYPES:
            hearing_status = "closed"
        color = HEARING_STATUS_COLORS[hearing_status]
        when = _fmt_date(hearing_date)
        messages = {
            "scheduled": [
                "A hearing has been scheduled for your case.",
                "Please make arrangements to attend at the specified date, time and location.",
            ],
            "postponed": [
                f"The hearing previously scheduled for {_fmt_date(previous_date) or 'an earlier date'} has been postponed.",
                "New hearing details are provided below.",
            ],
            "completed": [f"The hearing scheduled for {when} has been marked as completed."],
            "cancelled": [f"The hearing scheduled for {when} has been cancelled."],
            "closed": [f"The hearing scheduled for {when} has been closed."],
        }[hearing_status]
        if reason and hearing_status in ("postponed", "cancelled"):
            label = "postponement" if hearing_status == "postponed" else "cancellation"
            messages = messages + [f"Reason for {label}: {reason}"]

        details_html, details_text = _details(
            [("Case Number", case_number), ("Case Title", case_title), ("Date", when),
             ("Time", hearing_time), ("Location", location),
             ("Status", _badge(hearing_status, color))],
            raw_last=True,
        )
        details_text = details_text.rsplit("\n", 1)[0] + f"\nStatus: {hearing_status}"
        html = _layout(
            "Hearing Notification",
            [f"Dear {escape(user_name)},"] + [escape(m) for m in messages],
            details_html,
        )
        text = f"Hearing Notification\n\nDear {user_name},\n\n" + "\n".join(messages) + f"\n\n{details_text}"
        subject = f"Hearing {hearing_status.capitalize()}: {case_number}"
        return self.send_email([(user_email, user_name)], subject, html, text)

    def send_case_filing_confirmation_email(
        self, user_email: str, user_name: str, case_number: str, case_title: str, filing_fee
    ) -> bool:
        fee = format_currency(filing_fee, settings.PAYMENT_CURRENCY)
        details_html, details_text = _details(
            [("Case Number", case_number), ("Case Title", case_title), ("Filing Fee", fee),
             ("Status", "pending")]
        )
        paragraphs = [
            f"Dear {escape(user_name)},",
            "Your case has been filed successfully and is pending review.",
            "Please pay the filing fee to enable evidence uploads for this case.",
        ]
        html = _layout("Case Filed Successfully", paragraphs, details_html)
        text = (
            f"Case Filed Successfully\n\nDear {user_name},\n\n{paragraphs[1]}\n{paragraphs[2]}\n\n{details_text}"
        )
        return self.send_email([(user_email, user_name)], f"Case Filed Successfully: {case_number}", html, text)

    def send_evidence_status_email(
        self,
        user_email: str,
        user_name: str,
        case_number: str,
        case_title: str,
        evidence_title: str,
        evidence_status: str,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        if evidence_status == "approved":
            messages = [
                "We are pleased to inform you that your submitted evidence has been approved.",
                "This evidence will be considered in the proceedings of your case.",
            ]
        else:
            messages = ["We regret to inform you that your submitted evidence has been rejected."]
            if rejection_reason:
                messages.append(f"Reason for rejection: {rejection_reason}")
            messages.append(
                "You may submit alternative evidence or contact the court administration for further clarification."
            )
        color = EVIDENCE_STATUS_COLORS.get(evidence_status, "#9E9E9E")
        details_html, details_text = _details(
            [("Case Number", case_number), ("Case Title", case_title), ("Evidence Title", evidence_title),
             ("Status", _badge(evidence_status, color))],
            raw_last=True,
        )
        details_text = details_text.rsplit("\n", 1)[0] + f"\nStatus: {evidence_status}"
        html = _layout(
            "Evidence Status Update",
            [f"Dear {escape(user_name)},"] + [escape(m) for m in messages],
            details_html,
        )
        text = f"Evidence Status Update\n\nDear {user_name},\n\n" + "\n".join(messages) + f"\n\n{details_text}"
        subject = f"Evidence {'Approved' if evidence_status == 'approved' else 'Rejected'}: {case_number}"
        return self.send_email([(user_email, user_name)], subject, html, text)


email_service = EmailService()
