from mywork.schemas.common import CamelModel


class RatePresetOut(CamelModel):
    id: str
    label: str
    unit: str
    rate: float
    category: str


class RateCardOut(CamelModel):
    items: list[RatePresetOut]
