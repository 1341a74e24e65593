"""Forms for the trade blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import DecimalField, IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional


class MerchantForm(FlaskForm):
    """Form for opening or editing a store."""

    name = StringField("Store Name", validators=[DataRequired(), Length(max=64)])
    description = TextAreaField("Description", validators=[Optional(), Length(max=500)])


class GoldTradeForm(FlaskForm):
    """Form for offering gold."""

    amount = IntegerField("Amount", validators=[DataRequired(), NumberRange(min=1)])
    price_per_100 = DecimalField(
        "Price per 100G", validators=[DataRequired(), NumberRange(min=0.01)]
    )


class PurchaseForm(FlaskForm):
    """Form for reserving gold from a trade."""

    amount = IntegerField("Amount", validators=[DataRequired(), NumberRange(min=1)])


class ItemForm(FlaskForm):
    """Form for listing an item."""

    name = StringField("Item", validators=[DataRequired(), Length(max=100)])
    description = TextAreaField("Description", validators=[Optional(), Length(max=500)])
    price = DecimalField("Price", validators=[DataRequired(), NumberRange(min=0)])


class ItemStatusForm(FlaskForm):
    """Form for marking an item sold."""

    status = SelectField(
        "Status",
        choices=[("available", "Available"), ("sold", "Sold")],
        validators=[DataRequired()],
    )
