"""
Helpers for using Django forms as JSON payload validators.
"""

from .exceptions import ValidationError


def first_form_error(form) -> str:
    """The first error message of a bound, invalid form."""
    for field, errors in form.errors.items():
        if errors:
            return str(errors[0])
    return 'Invalid input'


def validate(form):
    """Return cleaned_data, or raise ValidationError with the first error."""
    if not form.is_valid():
        raise ValidationError(first_form_error(form))
    return form.cleaned_data
