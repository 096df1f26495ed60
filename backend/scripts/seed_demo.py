"""Seed demo marketplace users, including a few duplicate accounts.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import delete, select

# Make `identity_dedup` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from identity_dedup.db.session import SessionLocal
from identity_dedup.models import Booking, Message, OrganizerProfile, Review, TalentProfile, User, UserRole
from identity_dedup.services.audit import get_audit_sink
from identity_dedup.services.duplicates import find_existing_duplicates


def build_demo_users() -> list[tuple[str, str, UserRole, str | None]]:
    """Return deterministic (email, name, role, phone) rows, duplicates included."""

    return [
        ("alice@test.com", "Alice Wanjiru", UserRole.TALENT, "+254 712 345 678"),
        ("alice@test.co", "Alice Wanjiru", UserRole.TALENT, "0712-345-678"),
        ("brian@test.com", "Brian Otieno", UserRole.TALENT, "+254 700 111 222"),
        ("bookings@venue.events", "Skyline Venue", UserRole.ORGANIZER, "+254 733 000 111"),
        ("bookings@venue.event", "Skyline Venues", UserRole.ORGANIZER, None),
        ("carol@test.com", "Carol Njeri", UserRole.ORGANIZER, "+254 700 111 222"),
    ]


def reset_demo_data(db) -> None:
    """Remove demo users and everything that references them."""

    user_ids = list(
        db.scalars(
            select(User.id).where(
                User.email.in_([email for email, _, _, _ in build_demo_users()])
            )
        ).all()
    )
    if not user_ids:
        return
    db.execute(delete(Review).where(Review.receiver_id.in_(user_ids) | Review.giver_id.in_(user_ids)))
    db.execute(delete(Message).where(Message.sender_id.in_(user_ids) | Message.receiver_id.in_(user_ids)))
    db.execute(delete(Booking).where(Booking.organizer_id.in_(user_ids) | Booking.talent_id.in_(user_ids)))
    db.execute(delete(TalentProfile).where(TalentProfile.user_id.in_(user_ids)))
    db.execute(delete(OrganizerProfile).where(OrganizerProfile.user_id.in_(user_ids)))
    db.execute(delete(User).where(User.id.in_(user_ids)))
    db.commit()


def seed_demo_users(db) -> dict[str, str]:
    """Create demo users with profiles and a little activity; return email -> id."""

    base = datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc)
    ids: dict[str, str] = {}
    for idx, (email, name, role, phone) in enumerate(build_demo_users()):
        user = User(email=email, name=name, role=role, created_at=base + timedelta(days=idx))
        db.add(user)
        db.flush()
        ids[email] = user.id
        if role == UserRole.TALENT:
            db.add(TalentProfile(user_id=user.id, phone_number=phone, skills=["dj"]))
        else:
            db.add(OrganizerProfile(user_id=user.id, phone_number=phone, company_name=name))

    db.add_all(
        [
            Booking(organizer_id=ids["bookings@venue.events"], talent_id=ids["alice@test.com"], amount=300.0),
            Booking(organizer_id=ids["bookings@venue.event"], talent_id=ids["alice@test.co"], amount=250.0),
            Message(sender_id=ids["alice@test.co"], receiver_id=ids["bookings@venue.event"], content="Confirmed."),
            Review(giver_id=ids["bookings@venue.event"], receiver_id=ids["alice@test.co"], rating=5),
        ]
    )
    db.commit()
    return ids


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed demo marketplace users, including duplicates.")
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Do not delete existing demo users before seeding.",
    )
    parser.add_argument(
        "--scan",
        action="store_true",
        help="Run a duplicate scan after seeding and print the findings.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()

    with SessionLocal() as db:
        if not args.no_reset:
            reset_demo_data(db)
        ids = seed_demo_users(db)
        duplicates = find_existing_duplicates(db, audit_sink=get_audit_sink()) if args.scan else []

    print("Seed complete")
    print(f"users_created={len(ids)}")
    for email, user_id in ids.items():
        print(f"  {email} -> {user_id}")
    if args.scan:
        print(f"duplicates_found={len(duplicates)}")
        for duplicate in duplicates:
            print(
                f"  {duplicate.email} duplicates {duplicate.original_email} "
                f"({duplicate.similarity_score * 100:.1f}%): {', '.join(duplicate.reasons)}"
            )
    print()
    print("Inspect:")
    print("  find-duplicates --dry-run")
    print("  GET /admin/duplicates?action=scan")


if __name__ == "__main__":
    main()
