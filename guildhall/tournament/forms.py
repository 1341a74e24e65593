"""Forms for the tournament blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional


class TournamentForm(FlaskForm):
    """Form for creating a tournament."""

    name = StringField("Tournament Name", validators=[DataRequired(), Length(max=100)])

    description = TextAreaField("Description", validators=[Optional()])

    max_participants = IntegerField(
        "Max Participants", validators=[Optional(), NumberRange(min=2, max=256)]
    )


class JoinTournamentForm(FlaskForm):
    """Form for entering a character."""

    character_id = StringField("Character", validators=[DataRequired()])


class BracketForm(FlaskForm):
    """Form for drawing the bracket."""

    bracket_type = SelectField(
        "Bracket",
        choices=[("single", "Single Elimination"), ("double", "Double Elimination")],
        validators=[DataRequired()],
        default="single",
    )


class WinnerForm(FlaskForm):
    """Form for declaring a match winner."""

    match_id = StringField("Match", validators=[DataRequired()])
    winner = SelectField(
        "Winner",
        choices=[("player1", "Player 1"), ("player2", "Player 2")],
        validators=[DataRequired()],
    )
