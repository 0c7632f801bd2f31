from datetime import date
from decimal import Decimal, InvalidOperation

from flask_wtf import FlaskForm
from wtforms import DateField, Form, PasswordField, SelectField, StringField
from wtforms import DecimalField as WTFormsDecimalField
from wtforms.validators import (
    AnyOf,
    DataRequired,
    Email,
    InputRequired,
    Length,
    ValidationError,
)

from invoice_tracker.models import InvoiceState
from invoice_tracker.utils.phone import PHONE_NUMBER_MESSAGE, is_valid_phone_number
from invoice_tracker.utils.text import quantize_amount

BLANK_MESSAGE = "can't be blank"

# Invoice.amount is Numeric(10, 2).
AMOUNT_LIMIT = Decimal("100000000")
AMOUNT_LIMIT_MESSAGE = "must be less than 100000000"


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class AmountField(WTFormsDecimalField):
    """Decimal field rounded to cents that fits ``Invoice.amount``.

    Rounding happens before any validator runs, so ``0.001`` is checked as
    ``0.00``.
    """

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        try:
            value = Decimal(valuelist[0].strip())
        except (InvalidOperation, ValueError, AttributeError):
            self.data = None
            raise ValueError("is not a number")
        if not value.is_finite():
            self.data = None
            raise ValueError("is not a number")
        if value >= AMOUNT_LIMIT:
            self.data = None
            raise ValueError(AMOUNT_LIMIT_MESSAGE)
        if value > -AMOUNT_LIMIT:
            value = quantize_amount(value)
            if value >= AMOUNT_LIMIT:
                self.data = None
                raise ValueError(AMOUNT_LIMIT_MESSAGE)
        self.data = value


class PhoneNumber:
    """Charset and dialing-plan check sharing one error message."""

    def __init__(self, message=PHONE_NUMBER_MESSAGE):
        self.message = message

    def __call__(self, form, field):
        if not field.data:
            return
        if not is_valid_phone_number(field.data):
            raise ValidationError(self.message)


class GreaterThan:
    def __init__(self, minimum, message=None):
        self.minimum = minimum
        self.message = message or f"must be greater than {minimum}"

    def __call__(self, form, field):
        if field.data is not None and field.data <= self.minimum:
            raise ValidationError(self.message)


class LoginForm(FlaskForm):
    email = StringField("Email", filters=[_strip], validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired()])


class InvoiceForm(Form):
    """Field rules an invoice must satisfy before it is saved.

    This is a plain :class:`wtforms.Form` so the same rules apply to HTTP
    requests, CLI commands and seeding.  ``today`` is the date the issue date
    is checked against.
    """

    buyer_name = StringField(
        "Buyer Name",
        filters=[_strip],
        validators=[DataRequired(message=BLANK_MESSAGE)],
    )
    phone_number = StringField(
        "Phone Number",
        filters=[_strip],
        validators=[
            DataRequired(message=BLANK_MESSAGE),
            Length(min=7, message="is too short (minimum is 7 characters)"),
            Length(max=20, message="is too long (maximum is 20 characters)"),
            PhoneNumber(),
        ],
    )
    issue_date = DateField(
        "Issue Date", validators=[InputRequired(message=BLANK_MESSAGE)]
    )
    expiry_date = DateField(
        "Expiry Date", validators=[InputRequired(message=BLANK_MESSAGE)]
    )
    amount = AmountField(
        "Amount",
        places=2,
        validators=[InputRequired(message=BLANK_MESSAGE), GreaterThan(0)],
    )
    state = SelectField(
        "State",
        choices=[(value, value.title()) for value in InvoiceState.values()],
        default=InvoiceState.SENT.value,
        validate_choice=False,
        filters=[lambda value: _strip(value).lower() if value else value],
        validators=[
            DataRequired(message=BLANK_MESSAGE),
            AnyOf(InvoiceState.values(), message="is not included in the list"),
        ],
    )

    def __init__(self, formdata=None, today: date | None = None, **kwargs):
        super().__init__(formdata=formdata, **kwargs)
        self.today = today

    def validate_issue_date(self, field):
        if field.data and self.today and field.data > self.today:
            raise ValidationError("cannot be in the future")

    def validate_expiry_date(self, field):
        issue_date = self.issue_date.data
        if field.data and issue_date and field.data < issue_date:
            raise ValidationError("must be on or after issue date")
