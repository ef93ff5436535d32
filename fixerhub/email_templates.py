"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Blue/Slate color scheme
THEME = {
    "primary": "#2563eb",
    "primary_dark": "#1d4ed8",
    "primary_light": "#dbeafe",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
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
        <!-- Header -->
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="28px" font-weight="700" color="{THEME['primary']}" padding="0">
              FixerHub
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              © FixerHub. You're receiving this because you have a FixerHub account.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def email_verification_template(user_name: str, verification_link: str) -> str:
    """Email verification link MJML template"""
    content = f"""
    <mj-text>
      Hi {user_name},
    </mj-text>

    <mj-text>
      Thanks for signing up for FixerHub. Please confirm your email address to activate your account.
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      This link expires in 24 hours. If you did not create an account, you can ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Verify your FixerHub account",
        preview_text="Confirm your email address to get started",
        content_sections=content,
        cta_url=verification_link,
        cta_label="Verify Email",
    )


def welcome_email_template(user_name: str, role: str) -> str:
    """Welcome email MJML template"""
    if role == "service_provider":
        highlights = """
      • Receive booking requests and send quotations<br/>
      • Upload certifications to raise your level<br/>
      • Get paid by card or bank transfer
        """
    else:
        highlights = """
      • Find verified service providers near you<br/>
      • Request quotes and book in a few clicks<br/>
      • Pay securely and leave reviews
        """

    content = f"""
    <mj-text>
      Hi {user_name},
    </mj-text>

    <mj-text>
      Your email is verified and your FixerHub account is ready. With FixerHub, you can:
    </mj-text>

    <mj-text padding="0 0 0 20px">
      {highlights}
    </mj-text>
    """

    return get_base_template(
        title="Welcome to FixerHub!",
        preview_text="Your account is ready",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="Go to Dashboard",
    )


def certification_reviewed_template(
    provider_name: str,
    certification_title: str,
    approved: bool,
    points: int,
    level: str,
    rejection_reason: Optional[str] = None,
) -> str:
    """Certification approved / rejected MJML template"""
    if approved:
        status_text = f"""
    <mj-text>
      Your certification <strong>{certification_title}</strong> has been approved.
      You earned <strong>{points} points</strong> and your level is now
      <strong style="text-transform: capitalize;">{level}</strong>.
    </mj-text>
        """
    else:
        status_text = f"""
    <mj-text>
      Your certification <strong>{certification_title}</strong> was not approved.
    </mj-text>

    <mj-text color="{THEME['danger']}">
      Reason: {rejection_reason or "Not specified"}
    </mj-text>
        """

    content = f"""
    <mj-text>
      Hi {provider_name},
    </mj-text>
    {status_text}
    """

    return get_base_template(
        title="Certification Approved" if approved else "Certification Not Approved",
        preview_text=f"Update on {certification_title}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/certifications",
        cta_label="View Certifications",
    )


def payment_confirmed_template(
    recipient_name: str,
    amount: str,
    booking_id: int,
    payment_method: str,
    reference: Optional[str] = None,
) -> str:
    """Payment confirmation MJML template, sent to both parties"""
    reference_row = ""
    if reference:
        reference_row = f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Reference: {reference}
    </mj-text>
        """

    content = f"""
    <mj-text>
      Hi {recipient_name},
    </mj-text>

    <mj-text>
      A payment of <strong>{amount}</strong> for booking #{booking_id} has been confirmed
      ({payment_method.replace("_", " ")}).
    </mj-text>
    {reference_row}
    """

    return get_base_template(
        title="Payment Confirmed",
        preview_text=f"Payment of {amount} confirmed",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/bookings",
        cta_label="View Booking",
    )


def dispute_resolved_template(
    recipient_name: str,
    dispute_title: str,
    resolution: str,
    outcome: Optional[str] = None,
) -> str:
    """Dispute resolution MJML template"""
    outcome_row = ""
    if outcome:
        outcome_row = f"""
    <mj-text>
      Outcome: <strong>{outcome.replace("_", " ")}</strong>
    </mj-text>
        """

    content = f"""
    <mj-text>
      Hi {recipient_name},
    </mj-text>

    <mj-text>
      The dispute <strong>{dispute_title}</strong> has been resolved by our support team.
    </mj-text>

    <mj-text padding="0 0 0 20px" color="{THEME['text_muted']}">
      {resolution}
    </mj-text>
    {outcome_row}
    """

    return get_base_template(
        title="Dispute Resolved",
        preview_text=f"Resolution for {dispute_title}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/disputes",
        cta_label="View Dispute",
    )
