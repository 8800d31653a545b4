"""HTML email bodies for billing notifications

Every value interpolated into markup is escaped.
"""

from datetime import datetime
from html import escape

LEVEL_COLORS = {
    "critical": "#dc2626",
    "low": "#f59e0b",
    "moderate": "#3b82f6",
}

_BUTTON_STYLE = (
    "display: inline-block; background: #2563eb; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px; margin-top: 20px;"
)
_BOX_STYLE = "background: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;"


def format_vnd(amount: int) -> str:
    return f"{amount:,} VND"


def _button(url: str, label: str) -> str:
    return f'<a href="{escape(url)}" style="{_BUTTON_STYLE}">{escape(label)}</a>'


def _wrap(body: str) -> str:
    return f'<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">{body}</div>'


def low_balance_subject(level: str) -> str:
    return f"Low Credit Balance Alert - {level.upper()}"


def render_low_balance(organization_name: str, balance: int, threshold: int, level: str, app_url: str) -> str:
    color = LEVEL_COLORS.get(level, "#6b7280")
    return _wrap(
        f'<h2 style="color: {color};">Low Credit Balance Alert</h2>'
        f"<p>Dear {escape(organization_name)},</p>"
        "<p>Your credit balance is running low:</p>"
        f'<div style="{_BOX_STYLE}">'
        f'<p style="margin: 0; font-size: 24px; font-weight: bold; color: {color};">{format_vnd(balance)}</p>'
        '<p style="margin: 5px 0 0; color: #6b7280;">Current Balance</p>'
        "</div>"
        f"<p>Your alert threshold is set to {format_vnd(threshold)}.</p>"
        "<p>Top up your credits to ensure your promotions continue running smoothly.</p>"
        + _button(f"{app_url}/dashboard/billing", "Top Up Credits")
        + '<p style="margin-top: 30px; color: #6b7280; font-size: 12px;">'
        "You can adjust your alert settings in your dashboard.</p>"
    )


def expiration_subject(days_remaining: int) -> str:
    plural = "s" if days_remaining != 1 else ""
    return f"Promotion Expiring in {days_remaining} day{plural}"


def render_expiration_reminder(
    organization_name: str,
    construction_title: str,
    days_remaining: int,
    auto_renew: bool,
    end_date: datetime,
    app_url: str,
) -> str:
    plural = "s" if days_remaining != 1 else ""
    if auto_renew:
        advice = "<p>Your promotion will automatically renew if you have sufficient credits.</p>"
    else:
        advice = (
            "<p>Enable auto-renewal or manually renew your promotion to continue "
            "benefiting from increased visibility.</p>"
        )
    return _wrap(
        '<h2 style="color: #f59e0b;">Promotion Expiring Soon</h2>'
        f"<p>Dear {escape(organization_name)},</p>"
        f"<p>Your promotion for <strong>{escape(construction_title)}</strong> will expire in "
        f"<strong>{days_remaining} day{plural}</strong>.</p>"
        f'<div style="{_BOX_STYLE}">'
        f'<p style="margin: 0;">Expiration Date: <strong>{end_date:%Y-%m-%d %H:%M} UTC</strong></p>'
        f'<p style="margin: 10px 0 0;">Auto-Renewal: <strong>{"Enabled" if auto_renew else "Disabled"}</strong></p>'
        "</div>"
        + advice
        + _button(f"{app_url}/dashboard/promotions", "Manage Promotions")
    )


RENEWAL_SUCCESS_SUBJECT = "Promotion Auto-Renewed Successfully"
RENEWAL_FAILED_SUBJECT = "Promotion Auto-Renewal Failed"


def render_renewal_success(
    organization_name: str,
    construction_title: str,
    package_name: str,
    credits_spent: int,
    new_balance: int,
    app_url: str,
) -> str:
    return _wrap(
        '<h2 style="color: #10b981;">Promotion Auto-Renewed Successfully</h2>'
        f"<p>Dear {escape(organization_name)},</p>"
        f"<p>Your promotion for <strong>{escape(construction_title)}</strong> has been automatically renewed.</p>"
        f'<div style="{_BOX_STYLE}">'
        f'<p style="margin: 0;">Package: <strong>{escape(package_name)}</strong></p>'
        f'<p style="margin: 10px 0 0;">Credits Spent: <strong>{format_vnd(credits_spent)}</strong></p>'
        f'<p style="margin: 10px 0 0;">New Balance: <strong>{format_vnd(new_balance)}</strong></p>'
        "</div>"
        + _button(f"{app_url}/dashboard/promotions", "View Promotion Details")
    )


def render_renewal_failed(organization_name: str, construction_title: str, reason: str, app_url: str) -> str:
    return _wrap(
        '<h2 style="color: #dc2626;">Promotion Auto-Renewal Failed</h2>'
        f"<p>Dear {escape(organization_name)},</p>"
        "<p>We were unable to automatically renew your promotion for "
        f"<strong>{escape(construction_title)}</strong>.</p>"
        '<div style="background: #fef2f2; padding: 20px; border-radius: 8px; margin: 20px 0; '
        'border: 1px solid #fecaca;">'
        f'<p style="margin: 0; color: #dc2626;"><strong>Reason:</strong> {escape(reason)}</p>'
        "</div>"
        "<p>Your promotion has now expired. To continue promoting your construction, "
        "please top up your credits and manually renew the promotion.</p>"
        + _button(f"{app_url}/dashboard/billing", "Top Up Credits")
    )
