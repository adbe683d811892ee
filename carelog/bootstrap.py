"""
Create the tables and the first admin profile.

    python -m carelog.bootstrap "Ana Souza" ana@example.org
"""

import argparse
import logging

from carelog.models import access, medical  # noqa: F401  (register tables)
from carelog.models.database import Base, SessionLocal, engine
from carelog.models.patient import Profile

logger = logging.getLogger(__name__)


def create_admin(full_name: str, email: str | None) -> Profile:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        existing = db.query(Profile).filter(Profile.email == email).first() if email else None
        if existing:
            logger.info("Profile %s already exists", existing.id)
            return existing
        profile = Profile(full_name=full_name, email=email, role="admin")
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile
    finally:
        db.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("full_name")
    parser.add_argument("email", nargs="?")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(name)s | %(message)s")
    profile = create_admin(args.full_name, args.email)
    print(f"Admin profile id: {profile.id}  (send it as X-Profile-Id)")


if __name__ == "__main__":
    main()
