"""Forms for the guild blueprint."""

from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length


class InitializeGuildForm(FlaskForm):
    """Form for creating the guild."""

    name = StringField("Guild Name", validators=[DataRequired(), Length(max=64)])
    secret_key = StringField("Secret Key", validators=[DataRequired()])


class JoinGuildForm(FlaskForm):
    """Form for joining the guild with its secret key."""

    discord_name = StringField(
        "Discord Name", validators=[DataRequired(), Length(max=64)]
    )
    secret_key = StringField("Secret Key", validators=[DataRequired()])


class SecretKeyForm(FlaskForm):
    """Form for replacing the guild secret key."""

    secret_key = StringField("New Secret Key", validators=[DataRequired()])


class MemberForm(FlaskForm):
    """Form that targets a single member."""

    uid = StringField("Member", validators=[DataRequired()])
