"""Forms for the character blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from .models import CHARACTER_CLASSES, MAX_LEVEL


class CharacterForm(FlaskForm):
    """Form for adding or editing a character."""

    name = StringField("Name", validators=[DataRequired(), Length(max=32)])
    character_class = SelectField(
        "Class",
        choices=[(c, c) for c in CHARACTER_CLASSES],
        validators=[DataRequired()],
    )
    level = IntegerField(
        "Level", validators=[Optional(), NumberRange(min=1, max=MAX_LEVEL)]
    )
