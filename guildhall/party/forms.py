"""Forms for the party blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from .models import NESTS


class CreatePartyForm(FlaskForm):
    """Form for opening a party."""

    nest = SelectField(
        "Nest", choices=[(n, n) for n in NESTS], validators=[DataRequired()]
    )
    character_id = StringField("Character", validators=[DataRequired()])
    name = StringField("Party Name", validators=[Optional(), Length(max=64)])


class CharacterChoiceForm(FlaskForm):
    """Form naming the character that joins or leaves."""

    character_id = StringField("Character", validators=[DataRequired()])


class RenamePartyForm(FlaskForm):
    """Form for renaming a party."""

    name = StringField("Party Name", validators=[DataRequired(), Length(max=64)])


class InviteForm(FlaskForm):
    """Form for the Discord invite message."""

    message = TextAreaField("Message", validators=[Optional(), Length(max=1000)])
