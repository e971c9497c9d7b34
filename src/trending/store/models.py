from sqlalchemy import Column, DateTime, Index, String, Uuid
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ImpressionModel(Base):
    __tablename__ = "impressions"

    id = Column(Uuid(as_uuid=True), primary_key=True)
    entity_id = Column(String, nullable=False)
    actor_id = Column(String, nullable=True)
    observed_at = Column(DateTime(timezone=True), nullable=False)

    # Window scans filter on time first, then group by entity
    __table_args__ = (
        Index("ix_impressions_observed_at_entity", "observed_at", "entity_id"),
    )
