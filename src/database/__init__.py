"""
Database module for CRM Analytics API
Handles the PostgreSQL connection and CRM entity models
"""

from .connection import build_engine, create_tables, engine, get_session_factory, SessionLocal
from .models import Base, User, Contact, Lead, Deal, Task, Activity
from .seeder import seed_demo_data

__all__ = [
    "build_engine", "create_tables", "engine", "get_session_factory", "SessionLocal",
    "Base", "User", "Contact", "Lead", "Deal", "Task", "Activity",
    "seed_demo_data"
]
