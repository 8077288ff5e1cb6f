"""
Database initialization script.
"""
from parley.db.session import init_db

# Import all models so SQLAlchemy can register them
from parley.models import (  # noqa: F401
    User, FriendRelationship, Group, GroupMember, Chat, Message, MessageRead
)

if __name__ == "__main__":
    print("Initializing database...")
    init_db()
    print("Database initialized successfully!")
