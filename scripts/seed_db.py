"""
Seed script for the Rakshak Alert mock DB or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Force mock DB even if FIREBASE configured: python scripts/seed_db.py --apply --force-mock
  - Custom seed file: python scripts/seed_db.py --file my_seed.json --apply

Behavior:
  - Loads the seed from --file, or `db_seed.json` in the working directory, or the built-in sample.
  - Gets DB via `rakshak.config.firebase.get_db()` which returns the mock DB or real Firestore depending on settings.
  - Creates the default admin/moderator users.
  - Contacts go through ContactService so phone numbers are normalized; incidents are written as-is.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` and `USE_MOCK_DB=false` are set in `.env`.
"""

import argparse
import json
import os

from firebase_admin import firestore

from rakshak.config.firebase import get_db
from rakshak.core.exceptions import ValidationError
from rakshak.core.settings import settings
from rakshak.services.contact_service import ContactService
from rakshak.services.user_service import UserService


SAMPLE_SEED = {
    "contacts": [
        {"user_id": "default", "name": "Police Control Room", "phone": "9876543210", "is_default": True},
        {"user_id": "default", "name": "Family", "phone": "+91 91234 56789", "is_default": False},
    ],
    "incidents": [
        {
            "title": "Broken streetlight",
            "description": "Streetlight near the park gate has been off for a week.",
            "category": "lighting",
            "location": {"latitude": 18.5204, "longitude": 73.8567, "address": "FC Road, Pune"},
            "is_anonymous": False,
            "reporter": {"name": "Asha", "contact": None},
            "image": None,
            "priority": "normal",
            "status": "pending",
            "is_sos": False,
            "moderator_notes": None,
        },
        {
            "title": "Water logging",
            "description": "Underpass flooded after heavy rain, vehicles stuck.",
            "category": "flooding",
            "location": {"latitude": 18.5310, "longitude": 73.8446, "address": "Shivajinagar, Pune"},
            "is_anonymous": True,
            "reporter": {"name": "Anonymous", "contact": None},
            "image": None,
            "priority": "high",
            "status": "active",
            "is_sos": False,
            "moderator_notes": "Municipal team informed",
        },
    ],
}


def load_seed(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_to_db(db, seed: dict, apply: bool = False):
    # db is either MockFirestore or a real firestore client
    users_created = UserService(db=db).ensure_default_users() if apply else 0
    print(f"Default users: {'created ' + str(users_created) if apply else 'would be ensured'}")

    contact_service = ContactService(db=db)
    for contact in seed.get("contacts", []):
        print(f"Preparing: contacts/{contact['name']} ({contact.get('user_id', settings.DEFAULT_USER_ID)})")
        if not apply:
            continue
        try:
            created = contact_service.create_contact(
                user_id=contact.get("user_id", settings.DEFAULT_USER_ID),
                name=contact["name"],
                phone=contact["phone"],
                is_default=contact.get("is_default", False),
            )
            print(f"Wrote: contacts/{created['id']}")
        except ValidationError as e:
            print(f"Skipped contact {contact['name']}: {e.message}")

    for incident in seed.get("incidents", []):
        print(f"Preparing: incidents/{incident['title']}")
        if not apply:
            continue
        doc_ref = db.collection("incidents").document()
        doc_ref.set({
            **incident,
            "created_at": firestore.SERVER_TIMESTAMP,
            "updated_at": firestore.SERVER_TIMESTAMP,
        })
        print(f"Wrote: incidents/{doc_ref.id}")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force use of mock DB even if FIREBASE configured")
    parser.add_argument("--file", default=None, help="Seed JSON file (defaults to ./db_seed.json, then the built-in sample)")
    args = parser.parse_args()

    seed_path = args.file or os.path.join(os.getcwd(), "db_seed.json")
    if os.path.exists(seed_path):
        seed = load_seed(seed_path)
        print(f"Using seed file: {seed_path}")
    elif args.file:
        print(f"Seed file not found: {seed_path}")
        return
    else:
        seed = SAMPLE_SEED
        print("Using built-in sample seed")

    if args.force_mock:
        print("Forcing mock DB usage for this run.")
        # Works because get_db() reads settings lazily on first call
        settings.USE_MOCK_DB = True

    db = get_db()

    write_to_db(db, seed, apply=args.apply)

    if args.apply:
        print("Seeding completed.")
    else:
        print("Dry run complete. Re-run with --apply to write to DB.")


if __name__ == "__main__":
    main()
