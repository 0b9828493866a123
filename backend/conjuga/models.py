from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Text, Float, DateTime, ForeignKey, JSON, Boolean, Index
)
from sqlalchemy.orm import relationship

from conjuga.database import Base


class Verb(Base):
    __tablename__ = "verbs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lemma = Column(Text, unique=True, nullable=False)
    type = Column(String(20), nullable=False, default="regular")  # regular/irregular
    irregularity_json = Column(JSON, nullable=True)  # tense -> bool
    frequency = Column(String(20), nullable=True)  # high/medium/low
    families_json = Column(JSON, nullable=True)
    gloss_en = Column(Text, nullable=True)

    forms = relationship("VerbForm", back_populates="verb", order_by="VerbForm.id")


class VerbForm(Base):
    __tablename__ = "verb_forms"
    __table_args__ = (
        Index("ix_verb_forms_mood_tense", "mood", "tense"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    verb_id = Column(Integer, ForeignKey("verbs.id"), nullable=False, index=True)
    mood = Column(String(20), nullable=False)
    tense = Column(String(20), nullable=False)
    person = Column(String(20), nullable=True)  # NULL for nonfinite
    value = Column(Text, nullable=False)
    region_tag = Column(String(20), nullable=True)  # NULL = universal
    type = Column(String(20), nullable=True)  # regular/irregular, NULL = unknown

    verb = relationship("Verb", back_populates="forms")


class Attempt(Base):
    __tablename__ = "attempts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), nullable=False, default="local", index=True)
    form_id = Column(Integer, ForeignKey("verb_forms.id"), nullable=False, index=True)
    cell_key = Column(Text, nullable=False, index=True)
    correct = Column(Boolean, nullable=False)
    latency_ms = Column(Integer, nullable=True)
    hints_used = Column(Integer, default=0)
    user_answer = Column(Text, nullable=True)
    error_tags_json = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    form = relationship("VerbForm")


class MasteryRecord(Base):
    __tablename__ = "mastery_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), nullable=False, default="local")
    form_id = Column(Integer, ForeignKey("verb_forms.id"), nullable=False)
    cell_key = Column(Text, nullable=False, index=True)
    score = Column(Float, nullable=False, default=50.0)
    n = Column(Integer, default=0)
    weighted_attempts = Column(Float, default=0.0)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_mastery_user_form", "user_id", "form_id", unique=True),
    )


class CellSchedule(Base):
    __tablename__ = "cell_schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), nullable=False, default="local")
    cell_key = Column(Text, nullable=False)
    fsrs_card_json = Column(JSON)
    due = Column(DateTime, nullable=True, index=True)
    reps = Column(Integer, default=0)
    lapses = Column(Integer, default=0)
    last_reviewed = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_schedule_user_cell", "user_id", "cell_key", unique=True),
    )


class LearnerSettings(Base):
    __tablename__ = "learner_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), nullable=False, unique=True, default="local")
    level = Column(String(3), default="A1")
    region = Column(String(20), default="la_general")
    practice_mode = Column(String(20), default="mixed")
    verb_type = Column(String(20), default="all")
    selected_family = Column(String(40), nullable=True)
    clitics_percent = Column(Integer, default=0)
    enable_futuro_subj_prod = Column(Boolean, default=False)
    conmutacion_idx = Column(Integer, default=0)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
