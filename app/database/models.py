import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text

from .db import Base


class Survey(Base):
    __tablename__ = "surveys"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    unique_link_id = Column(String(32), nullable=False, unique=True, index=True)
    require_name = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Submission(Base):
    __tablename__ = "responses"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    survey_id = Column(String(36), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False)
    answer_value = Column(String(255), nullable=False)
    free_response = Column(Text, nullable=True)
    respondent_name = Column(String(255), nullable=True)
    hash_md5 = Column(String(128), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    is_suspected_bot = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def has_details(self) -> bool:
        return bool(self.free_response or self.respondent_name)


# Lookup paths only; duplicates on the same identity are tolerated.
Index("idx_responses_survey_hash", Submission.survey_id, Submission.hash_md5)
Index("idx_responses_survey_ip_created", Submission.survey_id, Submission.ip_address, Submission.created_at)
Index("idx_responses_ip_created", Submission.ip_address, Submission.created_at)
