# progress_hub/models/app_data.py
from sqlalchemy import JSON, Column, DateTime, Integer

from progress_hub.db.base import Base

APP_DATA_ROW_ID = 1


class AppData(Base):
    """
    Single-row document holding every collection as a JSON column.

    `revision` increases by one with every collection write, which is what
    the subscription uses to notice changes made by any process.
    """

    __tablename__ = "app_data"

    id = Column(Integer, primary_key=True)

    staff = Column(JSON, nullable=False, default=list)
    tasks = Column(JSON, nullable=False, default=list)
    meetings = Column(JSON, nullable=False, default=list)
    reports = Column(JSON, nullable=False, default=list)
    shifts = Column(JSON, nullable=False, default=list)

    revision = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<AppData id={self.id} revision={self.revision} updated_at={self.updated_at}>"
