"""Forms for the donation blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import IntegerField, StringField
from wtforms.validators import DataRequired, NumberRange, Optional


class DonationForm(FlaskForm):
    """Form for donating gold or cash."""

    amount = IntegerField("Amount", validators=[DataRequired(), NumberRange(min=1)])
    payment_method = StringField("Payment Method", validators=[Optional()])
