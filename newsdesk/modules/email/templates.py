"""
Email Templates
===============

HTML bodies built by string interpolation. Each builder returns
``(subject, html_body, text_body)``. Values typed in by visitors are
escaped, newsletter content is trusted editor HTML.
"""

from datetime import datetime
from typing import Any, Dict, Tuple

from markupsafe import escape

STYLE = {
    'bg': '#f8f9fa',
    'card_bg': '#ffffff',
    'text': '#333333',
    'text_secondary': '#666666',
    'accent': '#007bff',
    'font': 'Arial, sans-serif',
}

EmailParts = Tuple[str, str, str]


def _button(url, label):
    s = STYLE
    return f"""
            <div style="text-align: center; margin: 30px 0;">
                <a href="{url}" style="background-color: {s['accent']}; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; display: inline-block;">{label}</a>
            </div>"""


def _wrap(title, body):
    s = STYLE
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
</head>
<body style="font-family: {s['font']}; color: {s['text']}; max-width: 600px; margin: 0 auto;">
{body}
</body>
</html>
        """


# ==================== Subscription Confirmation ====================

def subscription_confirmation(subscriber: Dict[str, Any], site_name: str,
                              frontend_url: str) -> EmailParts:
    """Ask a new (or returning) subscriber to confirm their address"""
    s = STYLE
    site = escape(site_name)
    verify_url = f"{frontend_url}/verify/{subscriber.get('verification_token') or ''}"
    name = escape(subscriber.get('full_name') or 'there')
    interests = escape(', '.join(subscriber.get('interests') or []) or 'All topics')
    today = datetime.now().strftime('%B %d, %Y')

    subject = f"Welcome to {site_name}! Please confirm your subscription"
    html_body = _wrap(f"Welcome to {site}", f"""
    <div style="padding: 20px;">
        <h2>Welcome to {site}!</h2>
        <p>Hi {name},</p>
        <p>Thank you for subscribing to our newsletter. To complete your subscription, please confirm your email address by clicking the button below:</p>
        {_button(verify_url, 'Confirm Subscription')}
        <p>If the button doesn't work, copy and paste this link into your browser:</p>
        <p style="word-break: break-all; color: {s['accent']};">{verify_url}</p>

        <div style="margin: 20px 0; padding: 20px; background-color: {s['bg']}; border-radius: 5px;">
            <p><strong>Your Subscription Details:</strong></p>
            <ul>
                <li>Email: {escape(subscriber['email'])}</li>
                <li>Interests: {interests}</li>
                <li>Subscribed: {today}</li>
            </ul>
        </div>

        <p>Best regards,<br>The {site} Team</p>
        <hr style="margin: 20px 0;">
        <p style="font-size: 12px; color: {s['text_secondary']};">If you didn't subscribe to this newsletter, please ignore this email.</p>
    </div>""")

    text_body = f"""
Welcome to {site_name}!

Please confirm your subscription by visiting:
{verify_url}

If you didn't subscribe to this newsletter, please ignore this email.
    """
    return subject, html_body, text_body


# ==================== Newsletter ====================

def newsletter_issue(newsletter: Dict[str, Any], subscriber: Dict[str, Any],
                     site_name: str, frontend_url: str) -> EmailParts:
    """One newsletter addressed to one subscriber, with their unsubscribe link"""
    s = STYLE
    site = escape(site_name)
    title = escape(newsletter['title'])
    unsubscribe_url = f"{frontend_url}/unsubscribe/{subscriber['unsubscribe_token']}"
    newsletter_url = f"{frontend_url}/newsletters/{newsletter['slug']}"
    content = newsletter.get('content') or ''
    preview = content[:500] + ('...' if len(content) > 500 else '')
    published = (newsletter.get('publish_date') or '')[:10]

    image_html = ''
    if newsletter.get('featured_image'):
        image_html = f"""
        <img src="{escape(newsletter['featured_image'])}" alt="{title}" style="width: 100%; max-width: 600px; height: auto; margin: 20px 0; border-radius: 5px;">"""

    excerpt_html = ''
    if newsletter.get('excerpt'):
        excerpt_html = f"""
        <div style="margin: 20px 0; padding: 15px; background-color: {s['bg']}; border-left: 4px solid {s['accent']};">
            <p style="margin: 0; font-style: italic;">{escape(newsletter['excerpt'])}</p>
        </div>"""

    tags_html = ''
    if newsletter.get('tags'):
        tags = ''.join(
            f'<span style="display: inline-block; background-color: #e9ecef; color: #495057; padding: 4px 8px; border-radius: 3px; margin: 2px; font-size: 12px;">{escape(tag)}</span>'
            for tag in newsletter['tags']
        )
        tags_html = f'<div style="margin: 20px 0;"><p><strong>Tags:</strong></p><div>{tags}</div></div>'

    html_body = _wrap(f"{title} - {site}", f"""
    <div style="background-color: {s['bg']}; padding: 20px; text-align: center;">
        <h1 style="color: {s['text']}; margin: 0;">{site}</h1>
        <p style="color: {s['text_secondary']}; margin: 5px 0;">Newsletter</p>
    </div>

    <div style="padding: 20px;">
        <h2 style="color: {s['text']};">{title}</h2>
        {image_html}
        <div style="color: {s['text_secondary']}; margin: 10px 0;">
            <p><strong>Type:</strong> {escape(newsletter['type'].capitalize())}</p>
            <p><strong>Published:</strong> {published}</p>
            <p><strong>Reading time:</strong> {newsletter.get('reading_time', 1)} min</p>
        </div>
        {excerpt_html}
        <div style="margin: 20px 0; line-height: 1.6;">{preview}</div>
        {_button(newsletter_url, 'Read Full Newsletter')}
        {tags_html}
    </div>

    <div style="background-color: {s['bg']}; padding: 20px; text-align: center; color: {s['text_secondary']}; font-size: 14px;">
        <p>You're receiving this email because you subscribed to our newsletter.</p>
        <p><a href="{unsubscribe_url}" style="color: {s['accent']}; text-decoration: none;">Unsubscribe from this newsletter</a></p>
        <p style="margin: 10px 0;">&copy; {datetime.now().year} {site}. All rights reserved.</p>
    </div>""")

    text_body = f"""
{newsletter['title']}

{newsletter.get('excerpt') or ''}

Read the full newsletter: {newsletter_url}

To unsubscribe, visit: {unsubscribe_url}
    """
    return newsletter['title'], html_body, text_body


# ==================== Contact Form ====================

def contact_confirmation(contact: Dict[str, Any], site_name: str) -> EmailParts:
    """Acknowledge a contact form submission to its sender"""
    s = STYLE
    site = escape(site_name)
    subject = f"Thank you for contacting {site_name}"
    html_body = _wrap(subject, f"""
    <div style="padding: 20px;">
        <h2>Thank you for contacting us!</h2>
        <p>Hi {escape(contact['full_name'])},</p>
        <p>We've received your message and will get back to you as soon as possible.</p>

        <div style="margin: 20px 0; padding: 20px; background-color: {s['bg']}; border-radius: 5px;">
            <p><strong>Your Message Details:</strong></p>
            <ul>
                <li><strong>Subject:</strong> {escape(contact.get('title') or 'General enquiry')}</li>
                <li><strong>Message:</strong></li>
            </ul>
            <div style="margin: 10px 0; padding: 15px; background-color: white; border-left: 4px solid {s['accent']};">{escape(contact['message'])}</div>
            <ul>
                <li><strong>Reference ID:</strong> {contact['id']}</li>
            </ul>
        </div>

        <p>We typically respond within 24-48 hours during business days.</p>
        <p>Best regards,<br>The {site} Team</p>
    </div>""")
    text_body = f"""
Hi {contact['full_name']},

We've received your message and will get back to you as soon as possible.
Reference ID: {contact['id']}

The {site_name} Team
    """
    return subject, html_body, text_body


def contact_notification(contact: Dict[str, Any], site_name: str,
                         frontend_url: str) -> EmailParts:
    """Tell the site admin about a new contact form submission"""
    s = STYLE
    subject = f"New Contact Form Submission - {site_name}"
    rows = [
        ('Name', contact['full_name']),
        ('Email', contact['email']),
        ('Organization', contact.get('organization') or 'Not provided'),
        ('Title', contact.get('title') or 'Not provided'),
        ('IP Address', contact.get('ip_address') or 'Not recorded'),
        ('Reference ID', contact['id']),
    ]
    rows_html = '\n'.join(f'<li><strong>{label}:</strong> {escape(value)}</li>' for label, value in rows)
    html_body = _wrap(subject, f"""
    <div style="padding: 20px;">
        <h2>New Contact Form Submission</h2>
        <div style="margin: 20px 0; padding: 20px; background-color: {s['bg']}; border-radius: 5px;">
            <ul>
                {rows_html}
            </ul>
            <p><strong>Message:</strong></p>
            <div style="margin: 10px 0; padding: 15px; background-color: white; border-left: 4px solid {s['accent']};">{escape(contact['message'])}</div>
        </div>
        {_button(f"{frontend_url}/admin/contacts/{contact['id']}", 'View in Admin Panel')}
    </div>""")
    text_body = '\n'.join(f'{label}: {value}' for label, value in rows) + f"\n\n{contact['message']}\n"
    return subject, html_body, text_body
