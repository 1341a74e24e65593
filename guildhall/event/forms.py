"""Forms for the event blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField, StringField, TextAreaField, ValidationError
from wtforms.validators import DataRequired, Length, Optional


class EventForm(FlaskForm):
    """Form for creating or editing an event. Times are epoch milliseconds."""

    name = StringField("Event Name", validators=[DataRequired(), Length(max=100)])
    description = TextAreaField("Description", validators=[Optional()])
    start_at = IntegerField("Starts", validators=[DataRequired()])
    end_at = IntegerField("Ends", validators=[DataRequired()])
    reward_info = StringField("Reward", validators=[Optional(), Length(max=200)])
    notify_message = TextAreaField("Notification", validators=[Optional()])
    color = StringField("Color", validators=[Optional(), Length(max=32)])

    def validate_end_at(self, field):
        """An event must end after it starts."""
        if self.start_at.data and field.data and field.data <= self.start_at.data:
            raise ValidationError("An event must end after it starts.")

    def to_event_data(self):
        """Map the form onto event document fields."""
        return {
            "name": self.name.data,
            "description": self.description.data or "",
            "startAt": self.start_at.data,
            "endAt": self.end_at.data,
            "rewardInfo": self.reward_info.data or "",
            "notifyMessage": self.notify_message.data or "",
            "color": self.color.data or "",
        }


class RewardForm(FlaskForm):
    """Form for recording a participant's reward."""

    reward = StringField("Reward", validators=[DataRequired(), Length(max=200)])


class AnnouncementForm(FlaskForm):
    """Form for the Discord announcement."""

    message = TextAreaField("Message", validators=[Optional(), Length(max=1000)])
