from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Float, Boolean, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum

Base = declarative_base()


class DealStatus(str, Enum):
    OPPORTUNITY = "OPPORTUNITY"
    PROPOSAL = "PROPOSAL"
    NEGOTIATION = "NEGOTIATION"
    CLOSED_WON = "CLOSED_WON"
    CLOSED_LOST = "CLOSED_LOST"


class LeadStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    PROPOSAL = "PROPOSAL"
    NEGOTIATION = "NEGOTIATION"
    CLOSED_WON = "CLOSED_WON"
    CLOSED_LOST = "CLOSED_LOST"


class LeadSource(str, Enum):
    WEBSITE = "WEBSITE"
    REFERRAL = "REFERRAL"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    EMAIL_CAMPAIGN = "EMAIL_CAMPAIGN"
    PHONE_CALL = "PHONE_CALL"
    TRADE_SHOW = "TRADE_SHOW"
    OTHER = "OTHER"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


ACTIVE_DEAL_STATUSES = [DealStatus.OPPORTUNITY.value, DealStatus.PROPOSAL.value, DealStatus.NEGOTIATION.value]
CLOSED_STATUSES = [DealStatus.CLOSED_WON.value, DealStatus.CLOSED_LOST.value]
ACTIVE_LEAD_STATUSES = [
    LeadStatus.NEW.value, LeadStatus.CONTACTED.value, LeadStatus.QUALIFIED.value,
    LeadStatus.PROPOSAL.value, LeadStatus.NEGOTIATION.value,
]
PENDING_TASK_STATUSES = [TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value]
FINISHED_TASK_STATUSES = [TaskStatus.COMPLETED.value, TaskStatus.CANCELLED.value]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    leads = relationship("Lead", back_populates="assigned_to")
    deals = relationship("Deal", back_populates="assigned_to")
    tasks = relationship("Task", back_populates="assigned_to")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100))
    email = Column(String(255))
    company = Column(String(255))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"))

    title = Column(String(255), nullable=False)
    status = Column(String(50), default=LeadStatus.NEW.value)
    source = Column(String(50))
    value = Column(Float, default=0.0)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assigned_to = relationship("User", back_populates="leads")


class Deal(Base):
    __tablename__ = "deals"

    id = Column(Integer, primary_key=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"))
    contact_id = Column(Integer, ForeignKey("contacts.id"))

    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(50), default=DealStatus.OPPORTUNITY.value)
    value = Column(Float, default=0.0)
    probability = Column(Integer, default=0)

    # Close dates
    expected_close_date = Column(DateTime)
    actual_close_date = Column(DateTime)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assigned_to = relationship("User", back_populates="deals")
    contact = relationship("Contact")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"))

    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(50), default=TaskStatus.PENDING.value)
    priority = Column(String(50), default=TaskPriority.MEDIUM.value)

    due_date = Column(DateTime)
    completed_at = Column(DateTime)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assigned_to = relationship("User", back_populates="tasks")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"))
    lead_id = Column(Integer, ForeignKey("leads.id"))
    deal_id = Column(Integer, ForeignKey("deals.id"))

    type = Column(String(50))  # CALL, EMAIL, MEETING, NOTE
    title = Column(String(255), nullable=False)
    scheduled_at = Column(DateTime)
    completed_at = Column(DateTime)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User")
    lead = relationship("Lead")
    deal = relationship("Deal")


# Indexes backing the analytics reads
Index('idx_leads_status', Lead.status)
Index('idx_leads_source', Lead.source)
Index('idx_deals_status_close', Deal.status, Deal.actual_close_date)
Index('idx_deals_assigned_status', Deal.assigned_to_id, Deal.status)
Index('idx_tasks_status_due', Task.status, Task.due_date)
Index('idx_tasks_priority', Task.priority)
Index('idx_activities_created', Activity.created_at)
