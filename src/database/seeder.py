import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from .connection import SessionLocal, engine
from .models import (
    Activity,
    Base,
    Contact,
    Deal,
    DealStatus,
    Lead,
    LeadSource,
    LeadStatus,
    Task,
    TaskPriority,
    TaskStatus,
    User,
)

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"email": "admin@crm.local", "first_name": "Admin", "last_name": "User"},
    {"email": "ana@crm.local", "first_name": "Ana", "last_name": "Costa"},
    {"email": "bruno@crm.local", "first_name": "Bruno", "last_name": "Lima"},
    {"email": "carla@crm.local", "first_name": "Carla", "last_name": "Souza"},
]

DEMO_COMPANIES = ["Acme Corp", "Globex", "Initech", "Umbrella", "Stark Industries", "Wayne Enterprises"]

ACTIVITY_TYPES = ["CALL", "EMAIL", "MEETING", "NOTE"]


def seed_demo_data(session_factory: Optional[sessionmaker] = None, bind=None, now: Optional[datetime] = None,
                   rng: Optional[random.Random] = None) -> bool:
    """Populate an empty database with demo users, contacts, leads, deals, tasks and activities.

    Returns False without writing anything when users already exist.
    """
    session_factory = session_factory or SessionLocal
    now = now or datetime.utcnow()
    rng = rng or random.Random(42)

    Base.metadata.create_all(bind=bind or engine)

    db: Session = session_factory()
    try:
        if db.query(User).first():
            logger.info("Users already exist, skipping demo data")
            return False

        users = [User(**data) for data in DEMO_USERS]
        db.add_all(users)
        db.flush()

        contacts = []
        for index, company in enumerate(DEMO_COMPANIES):
            contact = Contact(
                first_name=f"Contact{index + 1}",
                last_name=company.split()[0],
                email=f"contact{index + 1}@{company.split()[0].lower()}.com",
                company=company,
            )
            contacts.append(contact)
        db.add_all(contacts)
        db.flush()

        lead_statuses = list(LeadStatus)
        lead_sources = list(LeadSource)
        for index in range(30):
            created = now - timedelta(days=rng.randint(0, 180))
            db.add(Lead(
                assigned_to_id=rng.choice(users).id,
                title=f"Lead {index + 1}",
                status=rng.choice(lead_statuses).value,
                source=rng.choice(lead_sources).value,
                value=float(rng.randrange(500, 20000, 250)),
                created_at=created,
                updated_at=created,
            ))

        deal_statuses = list(DealStatus)
        deals = []
        for index in range(20):
            created = now - timedelta(days=rng.randint(10, 200))
            status = rng.choice(deal_statuses)
            closed = status in (DealStatus.CLOSED_WON, DealStatus.CLOSED_LOST)
            deal = Deal(
                assigned_to_id=rng.choice(users).id,
                contact_id=rng.choice(contacts).id,
                title=f"Deal {index + 1}",
                status=status.value,
                value=float(rng.randrange(1000, 50000, 500)),
                probability=100 if status is DealStatus.CLOSED_WON else rng.randint(10, 90),
                expected_close_date=created + timedelta(days=rng.randint(15, 90)),
                actual_close_date=min(created + timedelta(days=rng.randint(5, 60)), now) if closed else None,
                created_at=created,
                updated_at=created,
            )
            deals.append(deal)
        db.add_all(deals)
        db.flush()

        priorities = list(TaskPriority)
        for index in range(25):
            created = now - timedelta(days=rng.randint(0, 60))
            status = rng.choice(list(TaskStatus))
            completed_at = None
            if status is TaskStatus.COMPLETED:
                completed_at = min(created + timedelta(hours=rng.randint(1, 240)), now)
            db.add(Task(
                assigned_to_id=rng.choice(users).id,
                title=f"Task {index + 1}",
                status=status.value,
                priority=rng.choice(priorities).value,
                due_date=created + timedelta(days=rng.randint(1, 14)),
                completed_at=completed_at,
                created_at=created,
                updated_at=created,
            ))

        for index in range(15):
            created = now - timedelta(hours=rng.randint(1, 24 * 45))
            db.add(Activity(
                user_id=rng.choice(users).id,
                deal_id=rng.choice(deals).id,
                type=rng.choice(ACTIVITY_TYPES),
                title=f"Activity {index + 1}",
                scheduled_at=created + timedelta(days=1),
                created_at=created,
            ))

        db.commit()
        logger.info(f"Demo data created: {len(users)} users, {len(contacts)} contacts, {len(deals)} deals")
        return True
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_demo_data()
