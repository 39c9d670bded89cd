"""One-off script to create an admin account (admins cannot sign up through the API).

Usage:
  Run from the project root with the virtual environment activated, e.g.:
    python scripts/create_admin.py admin@example.com Ana "Pérez López"
  The password is read from the terminal.
"""

from typing import Optional
import argparse
import getpass
import sys
import os

# Ensure project root is on the import path when running as a script
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from passlib.hash import bcrypt

from db import SessionLocal
from models import Admin


def create_admin(db, email: str, nombre: str, apellidos: str, password: str) -> Optional[Admin]:
    existing = db.query(Admin).filter(Admin.email == email).first()
    if existing:
        print(f"Admin '{email}' already exists with id {existing.id_admin}. Skipping create.")
        return existing

    admin = Admin(email=email, nombre=nombre, apellidos=apellidos, password=bcrypt.hash(password))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    print(f"Created admin '{email}' with id {admin.id_admin}.")
    return admin


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a SMART-TDAH admin account")
    parser.add_argument("email")
    parser.add_argument("nombre")
    parser.add_argument("apellidos")
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if not password:
        print("Password cannot be empty.")
        sys.exit(1)

    db = SessionLocal()
    try:
        create_admin(db, args.email, args.nombre, args.apellidos, password)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
