from pydantic import AwareDatetime, BaseModel, Field

BET_ID_PATTERN = r"^[0-9]+-[0-9]+-[0-9]+$"


class UserBet(BaseModel):
    id: str = Field(
        pattern=BET_ID_PATTERN,
        description="Three numbers separated by hyphens (e.g. 3340789-953125720-4194768007)",
    )

    model_config = {"frozen": True}


class Betslip(BaseModel):
    bets: list[UserBet] = Field(default_factory=list)

    model_config = {"frozen": True}


class Label(BaseModel):
    label: str


class Sport(Label):
    icon: str


class Actor(BaseModel):
    id: int
    label: str


class Choice(BaseModel):
    id: int
    odd: float = Field(gt=0)
    actor: Actor


class BetGroup(BaseModel):
    question: Label
    choices: list[Choice] = Field(default_factory=list)


class SportEvent(BaseModel):
    id: int
    label: str | None = None
    start: AwareDatetime
    competition: Label
    category: Label
    sport: Sport
    bet: dict[str, BetGroup] = Field(default_factory=dict)

    model_config = {"frozen": True}


class SportEventsResponse(BaseModel):
    events: list[SportEvent]
