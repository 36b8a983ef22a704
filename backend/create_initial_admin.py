# backend/create_initial_admin.py

import os

from equipdb.apps.accounts import models
from equipdb.config import Settings
from equipdb.database import Database
from equipdb.security import get_password_hash


def main() -> None:
    settings = Settings.from_env()
    database = Database.from_settings(settings)
    database.create_all()
    db = database.session()
    try:
        email = os.getenv("ADMIN_EMAIL", "admin@example.com").strip().lower()
        password = os.getenv("ADMIN_PASSWORD", "ChangeMe123!")
        name = os.getenv("ADMIN_NAME", "Portal Admin")

        existing = db.query(models.User).filter(models.User.email == email).first()
        if existing:
            if existing.role != models.UserRole.ADMIN:
                existing.role = models.UserRole.ADMIN
                db.commit()
                print(f"[OK] Promoted existing user to admin: id={existing.id}, email={existing.email}")
            else:
                print(f"[INFO] Admin already exists: id={existing.id}, email={existing.email}")
            return

        user = models.User(
            name=name,
            email=email,
            role=models.UserRole.ADMIN,
            is_active=True,
            hashed_password=get_password_hash(password),
        )

        db.add(user)
        db.commit()
        db.refresh(user)

        print("[OK] Created admin user:")
        print(f"  id:      {user.id}")
        print(f"  email:   {user.email}")
        print(f"  role:    {user.role.value}")
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    main()
