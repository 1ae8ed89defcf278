"""
Validation shared by the HTTP and socket send paths.
"""

from django import forms

REQUIRED = 'receiver_id and text are required'


class SendMessageForm(forms.Form):
    receiver_id = forms.IntegerField(error_messages={
        'required': REQUIRED,
        'invalid': 'receiver_id must be a user id',
    })
    # strip=True: whitespace-only text fails the required check
    text = forms.CharField(strip=True, error_messages={'required': REQUIRED})


class CounterpartForm(forms.Form):
    """The other side of a typing or seen event."""

    receiver_id = forms.IntegerField(error_messages={
        'required': 'receiver_id is required',
        'invalid': 'receiver_id must be a user id',
    })
