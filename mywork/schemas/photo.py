from mywork.schemas.common import CamelModel, UserSummaryOut, UtcDatetime


class PhotoOut(CamelModel):
    id: str
    job_id: str
    user_id: str
    url: str
    caption: str | None = None
    timestamp: UtcDatetime
    user: UserSummaryOut
