#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample authors and books for development.

USAGE:
    # Make sure you're in the project root with venv activated
    python scripts/seed_data.py

This script:
1. Connects to the database using app settings
2. Clears existing data (optional)
3. Creates sample authors, each with their books
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.database import SessionLocal, create_tables
from app.models import Author, Book

SAMPLE_DATA = [
    {
        "first_name": "George",
        "last_name": "RR Martin",
        "books": [
            {
                "title": "A Game of Thrones",
                "description": "The first novel in A Song of Ice and Fire.",
                "amount_of_pages": 694,
            },
            {
                "title": "A Clash of Kings",
                "description": "The second novel in A Song of Ice and Fire.",
                "amount_of_pages": 761,
            },
        ],
    },
    {
        "first_name": "Stephen",
        "last_name": "Fry",
        "books": [
            {
                "title": "Mythos",
                "description": "The Greek myths retold.",
                "amount_of_pages": 416,
            },
        ],
    },
    {
        "first_name": "James",
        "last_name": "Elroy",
        "books": [
            {
                "title": "American Tabloid",
                "description": "The first novel in the Underworld USA trilogy.",
                "amount_of_pages": 576,
            },
        ],
    },
    {
        "first_name": "Douglas",
        "last_name": "Adams",
        "books": [
            {
                "title": "The Hitchhiker's Guide to the Galaxy",
                "description": "A comedy science fiction series.",
                "amount_of_pages": 224,
            },
        ],
    },
]


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    db.execute(delete(Book))
    db.execute(delete(Author))
    db.commit()
    print("Data cleared.")


def create_authors(db: Session) -> list[Author]:
    """Create the sample authors together with their books."""
    print("Creating authors and books...")

    authors = []
    for data in SAMPLE_DATA:
        author = Author(first_name=data["first_name"], last_name=data["last_name"])
        author.books = [Book(**book) for book in data["books"]]
        db.add(author)
        authors.append(author)

    db.commit()
    for author in authors:
        db.refresh(author)

    print(f"Created {len(authors)} authors.")
    return authors


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    # Create tables if they don't exist
    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        authors = create_authors(db)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Authors: {len(authors)}")
        print(f"  - Books: {sum(len(a.books) for a in authors)}")
        print("\nYou can now access the API at http://localhost:8001")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
