from mywork.models.user import User
from mywork.models.job import Job, LineItem
from mywork.models.note import Note
from mywork.models.photo import Photo
from mywork.models.service_alert import ServiceAlert
from mywork.models.duration_change_request import DurationChangeRequest
from mywork.models.invite import Invite
from mywork.models.refresh_token import RefreshToken
