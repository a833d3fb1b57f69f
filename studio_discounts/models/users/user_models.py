from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from studio_discounts.core.db import Base


class User(Base):
    """Staff account. Managed by the console; read here for identity and roles."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(150), unique=True, nullable=False, index=True)
    full_name = Column(String(150), nullable=True)
    role = Column(String(50), nullable=False, default="staff")
    is_active = Column(Boolean, default=True, nullable=False)
    token_version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    def __repr__(self):
        return f"<User id={self.id} username={self.username} role={self.role}>"
