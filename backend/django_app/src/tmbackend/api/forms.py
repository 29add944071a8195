from datetime import date, datetime

from django import forms

from tmbackend.api.models import Task


def parse_iso_date(value):
    """Accept ``YYYY-MM-DD`` or a full ISO 8601 timestamp and return its date."""
    value = value.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value).date()


class IsoDateField(forms.DateField):
    input_formats = ['iso-8601']

    def to_python(self, value):
        if value not in self.empty_values and not isinstance(value, (str, date)):
            raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
        return super().to_python(value)

    def strptime(self, value, format):
        return parse_iso_date(value)


class TaskForm(forms.Form):
    title = forms.CharField(
        max_length=255,
        error_messages={'required': 'Title is required'},
    )
    description = forms.CharField(required=False, strip=False)
    effort_days = forms.IntegerField(
        required=False,
        min_value=1,
        error_messages={
            'invalid': 'Effort must be at least 1 day',
            'min_value': 'Effort must be at least 1 day',
        },
    )
    due_date = IsoDateField(
        error_messages={
            'required': 'Please provide a valid due date',
            'invalid': 'Please provide a valid due date',
        },
    )
    status = forms.ChoiceField(
        required=False,
        choices=Task.Status.choices,
        error_messages={'invalid_choice': 'Invalid status'},
    )

    def clean_effort_days(self):
        value = self.cleaned_data.get('effort_days')
        return 1 if value is None else value

    def clean_status(self):
        return self.cleaned_data.get('status') or Task.Status.PENDING


class RegisterForm(forms.Form):
    username = forms.CharField(max_length=50, error_messages={'required': 'Username is required'})
    email = forms.EmailField(max_length=100, error_messages={
        'required': 'Email is required',
        'invalid': 'Please provide a valid email',
    })
    password = forms.CharField(min_length=8, strip=False, error_messages={
        'required': 'Password is required',
        'min_length': 'Password must be at least 8 characters',
    })

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


def form_errors(form):
    """Flatten Django form errors into ``[{"field": ..., "message": ...}]``."""
    errors = []
    for field, messages in form.errors.get_json_data().items():
        for item in messages:
            errors.append({"field": field, "message": item["message"]})
    return errors
