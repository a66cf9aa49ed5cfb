"""
Email Module
============

Provides email sending through Resend or SMTP, with HTML templates for
subscription confirmations, newsletters and contact form replies.
"""

from .email_service import EmailService, email_service

__all__ = ['EmailService', 'email_service']
