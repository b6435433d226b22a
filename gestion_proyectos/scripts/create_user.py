"""Create a Gestion Proyectos user.

Usage:
    python -m gestion_proyectos.scripts.create_user --usuario admin --password <password> --rol admin
"""

from __future__ import annotations

import argparse
import sys

from gestion_proyectos.db.session import SessionLocal
from gestion_proyectos.models.user import ROLE_ADMIN, ROLE_USER, User
from gestion_proyectos.services.auth import create_user


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create a Gestion Proyectos user")
    parser.add_argument("--usuario", required=True, help="Login name for the new user")
    parser.add_argument("--password", required=True, help="Password for the new user")
    parser.add_argument("--nombre", default="", help="Display name (defaults to the login name)")
    parser.add_argument("--email", default=None)
    parser.add_argument("--rol", choices=(ROLE_ADMIN, ROLE_USER), default=ROLE_USER)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.usuario == args.usuario).first()
        if existing:
            print(f"User '{args.usuario}' already exists.")
            sys.exit(1)

        user = create_user(
            db, args.usuario, args.password, nombre=args.nombre, email=args.email, rol=args.rol
        )
        print(f"User '{user.usuario}' created successfully (id={user.id}, rol={user.rol}).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
