# billsplit/models/user.py

from sqlalchemy import Column, Integer, String, DateTime, func
from billsplit.db import Base

class User(Base):
    """
    A person who can belong to groups, contribute to expenses and send payments.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)  # display name
    email = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime, nullable=False, default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, name={self.name}, email={self.email})>"
