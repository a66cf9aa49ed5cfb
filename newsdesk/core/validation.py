"""
Field validation shared by the Newsdesk stores.
Every helper raises ValidationError with a user-facing message.
"""

import re

from .errors import ValidationError

# Email validation regex, rejects consecutive dots and leading/trailing dots
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

INTERESTS = ('photos', 'press', 'videos', 'general')
NEWSLETTER_TYPES = INTERESTS
NEWSLETTER_STATUSES = ('draft', 'published', 'archived')
SUBSCRIBER_SOURCES = ('website', 'mobile', 'import', 'api')
CONTACT_STATUSES = ('new', 'in-progress', 'resolved', 'closed')
USER_ROLES = ('admin', 'editor', 'user')
SETTING_TYPES = ('string', 'number', 'boolean', 'object', 'array')
SETTING_CATEGORIES = ('general', 'email', 'newsletter', 'social', 'seo', 'security')


def validate_email(email):
    """Validate email format"""
    if not email or not isinstance(email, str) or len(email) > 255:
        return False
    return EMAIL_REGEX.match(email.lower().strip()) is not None


def require_email(email, field='email'):
    if not validate_email(email):
        raise ValidationError(f'Please provide a valid {field}')
    return email.lower().strip()


def require_text(data, field, min_length=1, max_length=None, label=None):
    label = label or field.replace('_', ' ').capitalize()
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{label} is required')
    value = value.strip()
    if len(value) < min_length:
        raise ValidationError(f'{label} must be at least {min_length} characters')
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f'{label} cannot exceed {max_length} characters')
    return value


def optional_text(data, field, max_length=None, label=None):
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{label or field} must be a string')
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f'{label or field} cannot exceed {max_length} characters')
    return value


def require_choice(value, choices, field):
    if value not in choices:
        raise ValidationError(f"Invalid {field}: must be one of {', '.join(choices)}")
    return value


def require_interests(interests):
    """Interests must be a non-empty list drawn from INTERESTS, duplicates dropped"""
    if not isinstance(interests, (list, tuple)) or not interests:
        raise ValidationError('Interests must be a non-empty list')
    cleaned = []
    for interest in interests:
        require_choice(interest, INTERESTS, 'interest')
        if interest not in cleaned:
            cleaned.append(interest)
    return cleaned


def require_string_list(values, field):
    if values is None:
        return []
    if not isinstance(values, (list, tuple)) or not all(isinstance(v, str) for v in values):
        raise ValidationError(f'{field} must be a list of strings')
    return [v.strip() for v in values if v.strip()]


def parse_bool(value):
    """Interpret query-string style booleans, None when absent"""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def check_setting_value(value, value_type):
    """Raise unless value matches the declared setting type"""
    require_choice(value_type, SETTING_TYPES, 'setting type')

    if value_type == 'string':
        ok = isinstance(value, str)
    elif value_type == 'number':
        # bool is an int subclass but is not a number setting
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif value_type == 'boolean':
        ok = isinstance(value, bool)
    elif value_type == 'object':
        ok = isinstance(value, dict)
    else:
        ok = isinstance(value, list)

    if not ok:
        raise ValidationError(f'Setting value does not match type {value_type}')
    return value
