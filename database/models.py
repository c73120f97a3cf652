# Database Models for the IdeaTube crowdfunding platform
# Core identity records: users, channels and the idea posts campaigns start from

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
import uuid
import enum

Base = declarative_base()

def generate_uuid():
    return str(uuid.uuid4())

# Enums
class UserRole(str, enum.Enum):
    USER = "user"
    STAFF = "staff"

# Models
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255))
    role = Column(Enum(UserRole, values_callable=lambda x: [e.value for e in x], name="userrole"), default=UserRole.USER)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    channels = relationship("Channel", back_populates="owner")
    posts = relationship("Post", back_populates="author")

    @property
    def is_staff(self):
        return self.role == UserRole.STAFF

class Channel(Base):
    """Video channel run by an operator."""
    __tablename__ = "channels"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    icon_url = Column(String(500))
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    owner = relationship("User", back_populates="channels")
    posts = relationship("Post", back_populates="channel", cascade="all, delete-orphan")

class Post(Base):
    """Idea post on a channel; its author is owed the creator royalty."""
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    channel_id = Column(String(36), ForeignKey("channels.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    channel = relationship("Channel", back_populates="posts")
    author = relationship("User", back_populates="posts")
