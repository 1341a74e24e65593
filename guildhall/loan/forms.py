"""Forms for the loan blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import IntegerField, SelectField, StringField, ValidationError
from wtforms.validators import DataRequired, NumberRange, Optional


class LoanRequestForm(FlaskForm):
    """Form for asking the guild or a merchant for a loan."""

    amount = IntegerField("Amount", validators=[DataRequired(), NumberRange(min=1)])
    source_type = SelectField(
        "Borrow From",
        choices=[("guild", "Guild"), ("merchant", "Merchant")],
        default="guild",
        validators=[DataRequired()],
    )
    merchant_id = StringField("Merchant")
    trade_id = StringField("Trade", validators=[Optional()])
    due_date = IntegerField("Due Date", validators=[Optional()])

    def validate_merchant_id(self, field):
        """Merchant loans must name the merchant."""
        if self.source_type.data == "merchant" and not field.data:
            raise ValidationError("Choose a merchant to borrow from.")
