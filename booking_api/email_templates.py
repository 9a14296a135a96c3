"""
MJML Email Templates
Booking confirmation and alert emails using MJML for responsive, cross-client compatibility
"""

from html import escape
from typing import Optional

from .config import BUSINESS_NAME, FRONTEND_URL

THEME = {
    "primary": "#1d4ed8",
    "primary_light": "#dbeafe",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "warning": "#f59e0b",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 0 40px">
          <mj-column>
            <mj-text font-size="18px" font-weight="700" color="{THEME['primary']}" padding="0">
              {escape(BUSINESS_NAME)}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 32px 0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              {escape(BUSINESS_NAME)}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_rows(rows: list[tuple[str, Optional[str]]]) -> str:
    lines = "".join(
        f'<tr><td style="padding:6px 12px 6px 0;color:{THEME["text_muted"]};">{escape(label)}</td>'
        f'<td style="padding:6px 0;color:{THEME["text_primary"]};">{escape(value)}</td></tr>'
        for label, value in rows
        if value
    )
    return f"""
            <mj-table padding="0 0 16px 0">
              {lines}
            </mj-table>
    """


def appointment_confirmation_template(
    full_name: str, services: list[str], appointment_date: str, appointment_time: str
) -> str:
    details = _detail_rows(
        [
            ("Date", appointment_date),
            ("Time", appointment_time),
            ("Services", ", ".join(services)),
        ]
    )
    content = f"""
            <mj-text padding="0 0 16px 0">
              Hi {escape(full_name)}, your payment was received and your appointment is confirmed.
            </mj-text>
            {details}
            <mj-text padding="0" color="{THEME['text_muted']}">
              We'll contact you before the appointment if anything changes.
            </mj-text>
    """
    return get_base_template(
        title="Your appointment is confirmed",
        preview_text=f"Appointment on {appointment_date} at {appointment_time}",
        content_sections=content,
    )


def appointment_admin_alert_template(
    full_name: str,
    email: str,
    phone: Optional[str],
    services: list[str],
    appointment_date: str,
    appointment_time: str,
    description: Optional[str] = None,
    review_reason: Optional[str] = None,
) -> str:
    warning = ""
    if review_reason:
        warning = f"""
            <mj-text padding="0 0 16px 0" color="{THEME['warning']}" font-weight="600">
              Needs review: {escape(review_reason)}
            </mj-text>
        """
    details = _detail_rows(
        [
            ("Customer", full_name),
            ("Email", email),
            ("Phone", phone),
            ("Date", appointment_date),
            ("Time", appointment_time),
            ("Services", ", ".join(services)),
            ("Details", description),
        ]
    )
    content = f"""
            {warning}
            {details}
    """
    return get_base_template(
        title="New appointment booking",
        preview_text=f"{full_name} booked {appointment_date} at {appointment_time}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL.rstrip('/')}/admin/appointments",
        cta_label="Open dashboard",
    )


def listing_submitted_template(contact_name: str, title: str, address: str) -> str:
    content = f"""
            <mj-text padding="0 0 16px 0">
              Hi {escape(contact_name)}, thanks for your payment. Your listing
              <strong>{escape(title)}</strong> at {escape(address)} has been submitted and is
              awaiting review. We'll let you know once it's live.
            </mj-text>
    """
    return get_base_template(
        title="Listing submitted",
        preview_text=f"{title} is awaiting review",
        content_sections=content,
        cta_url=f"{FRONTEND_URL.rstrip('/')}/dashboard/listings",
        cta_label="View your listings",
    )
