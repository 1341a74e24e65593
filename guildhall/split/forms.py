"""Forms for the split blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import BooleanField, DecimalField, StringField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange


class CreateBillForm(FlaskForm):
    """Form for creating a bill."""

    title = StringField("Title", validators=[DataRequired(), Length(max=100)])
    character_id = StringField("Your Character", validators=[DataRequired()])


class ItemNameForm(FlaskForm):
    """Form for adding or renaming an item."""

    name = StringField("Item", validators=[DataRequired(), Length(max=100)])


class ParticipantForm(FlaskForm):
    """Form for adding a character to a bill."""

    character_id = StringField("Character", validators=[DataRequired()])


class CustomParticipantForm(FlaskForm):
    """Form for adding a participant without a character."""

    name = StringField("Name", validators=[DataRequired(), Length(max=64)])


class PaidForm(FlaskForm):
    """Form for toggling whether a participant was paid."""

    paid = BooleanField("Paid")


class StampForm(FlaskForm):
    """Form for the stamp to gold calculator."""

    stamps = DecimalField("Stamps", validators=[InputRequired(), NumberRange(min=0)])
    gold_rate = DecimalField(
        "Baht per Gold", validators=[InputRequired(), NumberRange(min=0.0001)]
    )
