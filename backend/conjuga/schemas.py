from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

from conjuga.config import settings as app_settings

Level = Literal["A1", "A2", "B1", "B2", "C1", "C2", "ALL"]
Region = Literal["rioplatense", "peninsular", "la_general", "other"]
PracticeMode = Literal["mixed", "specific", "theme"]
VerbType = Literal["all", "regular", "irregular"]

DEFAULT_CONMUTACION_SEQ = ["2s_vos", "3p", "3s"]


class SelectionSettings(BaseModel):
    """Everything the filter and selector read for one drill request.

    Closed: unknown fields and unknown enum values fail at construction.
    ``conmutacion_idx`` is the only field the selector mutates.
    """

    level: Level = Field(default_factory=lambda: app_settings.default_level)
    region: Region = Field(default_factory=lambda: app_settings.default_region)
    practice_mode: PracticeMode = "mixed"
    specific_mood: Optional[str] = None
    specific_tense: Optional[str] = None
    verb_type: VerbType = "all"
    selected_family: Optional[str] = None
    allowed_lemmas: Optional[set[str]] = None
    came_from_tema: bool = False
    enable_futuro_subj_prod: bool = Field(default_factory=lambda: app_settings.enable_futuro_subj_prod)
    enable_c2_conmutacion: bool = Field(default_factory=lambda: app_settings.enable_c2_conmutacion)
    conmutacion_seq: list[str] = Field(default_factory=lambda: list(DEFAULT_CONMUTACION_SEQ))
    conmutacion_idx: int = Field(default=0, ge=0)
    clitics_percent: int = Field(default_factory=lambda: app_settings.clitics_percent, ge=0, le=100)
    regular_ratio: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    due_cells: set[str] = Field(default_factory=set)
    strict_specific: bool = True

    model_config = {"extra": "forbid", "validate_assignment": True}

    @model_validator(mode="after")
    def _specific_needs_target(self):
        if self.practice_mode == "specific" and not self.came_from_tema:
            if not self.specific_mood or not self.specific_tense:
                raise ValueError("specific practice requires specific_mood and specific_tense")
        return self


class FormOut(BaseModel):
    id: Optional[int] = None
    lemma: str
    mood: str
    tense: str
    person: Optional[str] = None
    value: str
    region_tag: Optional[str] = None
    verb_type: str
    model_config = {"from_attributes": True}


class VerbOut(BaseModel):
    id: int
    lemma: str
    type: str
    frequency: Optional[str] = None
    families: list[str] = []
    gloss_en: Optional[str] = None
    form_count: int = 0


class DrillRequest(BaseModel):
    settings: Optional[SelectionSettings] = None
    previous_form_id: Optional[int] = None
    user_id: str = "local"
    seed: Optional[int] = None


class DrillItemOut(BaseModel):
    form: FormOut
    conmutacion_idx: int
    fallback: bool = False
    eligible_count: int = 0


class AttemptIn(BaseModel):
    form_id: int
    correct: bool
    latency_ms: Optional[int] = Field(default=None, ge=0)
    hints_used: int = Field(default=0, ge=0)
    user_answer: Optional[str] = None
    error_tags: list[str] = []
    user_id: str = "local"


class MasteryOut(BaseModel):
    score: float
    n: int
    weighted_attempts: float


class AttemptOut(BaseModel):
    attempt_id: int
    form_id: int
    cell_key: str
    mastery: MasteryOut
    next_due: Optional[datetime] = None


class ConfidenceOut(BaseModel):
    level: str
    sufficient: bool
    message: str


class CellMasteryOut(BaseModel):
    mood: str
    tense: str
    person: Optional[str] = None
    score: float
    n: int
    weighted_n: float
    confidence: ConfidenceOut
    classification: str
    recommendation: str


class LearnerSettingsIn(BaseModel):
    level: Optional[Level] = None
    region: Optional[Region] = None
    practice_mode: Optional[PracticeMode] = None
    verb_type: Optional[VerbType] = None
    selected_family: Optional[str] = None
    clitics_percent: Optional[int] = Field(default=None, ge=0, le=100)
    enable_futuro_subj_prod: Optional[bool] = None

    model_config = {"extra": "forbid"}


class LearnerSettingsOut(BaseModel):
    user_id: str
    level: str
    region: str
    practice_mode: str
    verb_type: str
    selected_family: Optional[str] = None
    clitics_percent: int
    enable_futuro_subj_prod: bool
    conmutacion_idx: int
    model_config = {"from_attributes": True}
